"""
Gateway session state machine.

    DISCONNECTED -> CONNECTING -> AWAITING_HELLO -> IDENTIFYING -> ACTIVE
    (any phase) -> CLOSING -> DISCONNECTED -> backoff -> CONNECTING

Every input (transport open/frame/close, heartbeat tick, reconnect trigger)
arrives as a synchronous callback on the event loop and every transition
runs to completion without awaiting, so the Session is never observed
half-updated. Notifications are submitted to the dispatcher and never
awaited here.

Session resumption is not attempted: every reconnect performs a fresh
Identify.
"""

import asyncio
import functools
import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Union

from pydantic import BaseModel, ValidationError

from mayu.errors import MalformedEnvelope, ReconnectCeilingExceeded
from mayu.heartbeat import HeartbeatTimer
from mayu.models.envelope import Envelope, HelloParameters, IdentifyData, Opcode
from mayu.models.events import GatewayEvent, Intents
from mayu.models.member import MemberJoinedNotification
from mayu.reconnect import ReconnectPolicy, ReconnectSupervisor
from mayu.transport.envelope import build_envelope, decode_envelope, encode_envelope
from mayu.transport.websocket import OnClose, OnFrame, OnOpen

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AWAITING_HELLO = "awaiting_hello"
    IDENTIFYING = "identifying"
    ACTIVE = "active"
    CLOSING = "closing"


LIVE_PHASES = {Phase.IDENTIFYING, Phase.ACTIVE}


class Session(BaseModel):
    phase: Phase = Phase.DISCONNECTED
    last_sequence: Optional[int] = None
    session_id: Optional[str] = None
    reconnect_attempts: int = 0


class Transport(Protocol):
    @property
    def open(self) -> bool: ...

    def send(self, text: str) -> None: ...

    def close(self) -> None: ...


TransportFactory = Callable[[OnOpen, OnFrame, OnClose], Transport]


class NotificationSink(Protocol):
    def submit(self, notification: MemberJoinedNotification) -> None: ...


class GatewaySession:
    def __init__(
        self,
        *,
        token: str,
        guild_id: str,
        connect: TransportFactory,
        dispatcher: NotificationSink,
        policy: Optional[ReconnectPolicy] = None,
        intents: int = Intents.DEFAULT,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        on_fatal: Optional[Callable[[ReconnectCeilingExceeded], None]] = None,
    ):
        self._token = token
        self._guild_id = guild_id
        self._connect = connect
        self._dispatcher = dispatcher
        self._intents = intents
        self._on_fatal = on_fatal
        self._loop = loop or asyncio.get_running_loop()

        self._session = Session()
        self._heartbeat = HeartbeatTimer(self._loop, self._beat)
        self._supervisor = ReconnectSupervisor(policy or ReconnectPolicy(), self._loop)
        self._transport: Optional[Transport] = None
        self._connection_id = 0
        self._stopped = False

    @property
    def state(self) -> Session:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._session.phase

    @property
    def heartbeat(self) -> HeartbeatTimer:
        return self._heartbeat

    @property
    def supervisor(self) -> ReconnectSupervisor:
        return self._supervisor

    # ─── lifecycle ──────────────────────────────────────────────────────

    def start(self) -> None:
        """Open the first connection."""
        if self._session.phase != Phase.DISCONNECTED:
            raise RuntimeError(f"Cannot start session in phase {self._session.phase.value}")
        self._stopped = False
        self._open_connection()

    def stop(self) -> None:
        """Shut down for good: no reconnect is scheduled afterwards."""
        self._stopped = True
        self._supervisor.cancel()
        self._heartbeat.stop()
        self._drop_transport()
        self._session.session_id = None
        self._session.phase = Phase.DISCONNECTED
        logger.info("Gateway session stopped")

    def _open_connection(self) -> None:
        self._connection_id += 1
        conn = self._connection_id
        self._session.phase = Phase.CONNECTING
        logger.info(f"Connecting to gateway (connection {conn})")
        self._transport = self._connect(
            functools.partial(self._on_open, conn),
            functools.partial(self._on_frame, conn),
            functools.partial(self._on_close, conn),
        )

    def _reconnect_due(self) -> None:
        if self._stopped or self._session.phase != Phase.DISCONNECTED:
            return
        self._open_connection()

    # ─── transport callbacks ───────────────────────────────────────────

    def _on_open(self, conn: int) -> None:
        if conn != self._connection_id or self._session.phase != Phase.CONNECTING:
            return
        self._session.phase = Phase.AWAITING_HELLO
        logger.info("Connected to gateway")

    def _on_close(self, conn: int, code: Optional[int], reason: str) -> None:
        if conn != self._connection_id or self._transport is None:
            return
        logger.warning(f"Gateway connection closed: {code} - {reason}")
        self._teardown(f"closed ({code})")

    def _on_frame(self, conn: int, raw: Union[str, bytes]) -> None:
        if conn != self._connection_id or self._transport is None:
            return
        try:
            envelope = decode_envelope(raw)
        except MalformedEnvelope as e:
            logger.warning(f"Dropping connection on malformed frame: {e}")
            self._teardown("malformed frame")
            return
        self.handle_envelope(envelope)

    # ─── envelope routing ──────────────────────────────────────────────

    def handle_envelope(self, envelope: Envelope) -> None:
        opcode = envelope.opcode
        if opcode == Opcode.HELLO:
            self._handle_hello(envelope)
        elif opcode == Opcode.DISPATCH:
            self._handle_dispatch(envelope)
        elif opcode == Opcode.HEARTBEAT_ACK:
            logger.debug("Heartbeat acknowledged")
        elif opcode == Opcode.HEARTBEAT:
            # peer asked for an immediate beat
            self._beat()
        elif opcode == Opcode.RECONNECT:
            logger.info("Received reconnect request")
            self._teardown("reconnect requested")
        else:
            logger.debug(f"Ignoring opcode {envelope.op}")

    def _handle_hello(self, envelope: Envelope) -> None:
        if self._session.phase != Phase.AWAITING_HELLO:
            self._unexpected(envelope)
            return
        try:
            hello = HelloParameters.model_validate(envelope.d)
        except ValidationError:
            logger.warning(f"Dropping connection on invalid Hello: {envelope.d!r}")
            self._teardown("invalid hello")
            return

        # heartbeat must be running before Identify leaves
        self._heartbeat.start(hello.heartbeat_interval)
        self._session.phase = Phase.IDENTIFYING
        self._identify()

    def _handle_dispatch(self, envelope: Envelope) -> None:
        if self._session.phase not in LIVE_PHASES:
            self._unexpected(envelope)
            return
        if envelope.s is not None:
            self._session.last_sequence = envelope.s
        if self._session.phase == Phase.IDENTIFYING:
            self._session.phase = Phase.ACTIVE
            self._session.reconnect_attempts = 0
            logger.info("Gateway session active")

        data = envelope.d if isinstance(envelope.d, dict) else {}
        if envelope.t == GatewayEvent.READY:
            self._session.session_id = data.get("session_id")
            logger.info(f"Ready (session {self._session.session_id})")
        elif envelope.t == GatewayEvent.GUILD_MEMBER_ADD:
            self._handle_member_add(data)

    def _handle_member_add(self, data: dict[str, Any]) -> None:
        if data.get("guild_id") != self._guild_id:
            return
        try:
            notification = MemberJoinedNotification.model_validate(data.get("user"))
        except ValidationError as e:
            logger.warning(f"Skipping member join with unreadable user block: {e.error_count()} error(s)")
            return
        logger.info(f"Member joined: {notification.username} ({notification.user_id})")
        self._dispatcher.submit(notification)

    def _unexpected(self, envelope: Envelope) -> None:
        logger.warning(f"Unexpected opcode {envelope.op} in phase {self._session.phase.value}")
        self._teardown("unexpected envelope")

    # ─── outbound ──────────────────────────────────────────────────────

    def _send(self, envelope: Envelope) -> bool:
        if self._transport is None or not self._transport.open:
            return False
        self._transport.send(encode_envelope(envelope))
        return True

    def _identify(self) -> None:
        data = IdentifyData(token=self._token, intents=self._intents)
        if self._send(build_envelope(Opcode.IDENTIFY, data.model_dump(by_alias=True))):
            logger.info("Sent identify payload")

    def _beat(self) -> None:
        if self._session.phase not in LIVE_PHASES:
            return
        if self._send(build_envelope(Opcode.HEARTBEAT, self._session.last_sequence)):
            logger.debug(f"Sent heartbeat (seq {self._session.last_sequence})")

    # ─── teardown ──────────────────────────────────────────────────────

    def _drop_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()

    def _teardown(self, reason: str) -> None:
        self._session.phase = Phase.CLOSING
        self._heartbeat.stop()
        self._session.session_id = None
        self._drop_transport()
        logger.debug(f"Closing ({reason}), last sequence {self._session.last_sequence}")
        self._session.last_sequence = None
        self._session.phase = Phase.DISCONNECTED

        if self._stopped:
            return
        try:
            self._supervisor.schedule(self._session, self._reconnect_due)
        except ReconnectCeilingExceeded as e:
            logger.error(f"{e} Giving up.")
            self._session = Session()
            if self._on_fatal is not None:
                self._on_fatal(e)
            else:
                raise
