"""Shared fakes: a manual-clock event loop and a scripted gateway transport."""

import json
from typing import Any, Callable, Optional

import pytest

from mayu.session import GatewaySession
from mayu.reconnect import ReconnectPolicy

TOKEN = "test-token"
GUILD_ID = "111111111111111111"


class FakeHandle:
    def __init__(self, when: float, callback: Callable[..., None], args: tuple):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Just enough of an event loop for call_later-driven code, with a clock moved by hand."""

    def __init__(self) -> None:
        self.time = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[..., None], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.time + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def scheduled(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        target = self.time + seconds
        while True:
            due = [h for h in self.scheduled if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.time = handle.when
            handle.fired = True
            handle.callback(*handle.args)
        self.time = target


class FakeTransport:
    def __init__(self, on_open, on_frame, on_close):
        self._on_open = on_open
        self._on_frame = on_frame
        self._on_close = on_close
        self.open = False
        self.closed = False
        self.sent: list[str] = []

    def send(self, text: str) -> None:
        self.sent.append(text)

    def close(self) -> None:
        self.closed = True
        self.open = False

    @property
    def sent_envelopes(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]

    # driven by tests

    def connect(self) -> None:
        self.open = True
        self._on_open()

    def deliver(self, payload: Any) -> None:
        self._on_frame(payload if isinstance(payload, str) else json.dumps(payload))

    def drop(self, code: Optional[int] = 1006, reason: str = "") -> None:
        self.open = False
        self._on_close(code, reason)


class FakeGateway:
    """Transport factory recording every connection the session opens."""

    def __init__(self) -> None:
        self.transports: list[FakeTransport] = []

    def __call__(self, on_open, on_frame, on_close) -> FakeTransport:
        transport = FakeTransport(on_open, on_frame, on_close)
        self.transports.append(transport)
        return transport

    @property
    def current(self) -> FakeTransport:
        return self.transports[-1]


class RecordingDispatcher:
    def __init__(self) -> None:
        self.submitted = []

    def submit(self, notification) -> None:
        self.submitted.append(notification)


def hello(interval: int = 41250) -> dict[str, Any]:
    return {"op": 10, "d": {"heartbeat_interval": interval}}


def dispatch(event: str, data: Any, seq: Optional[int]) -> dict[str, Any]:
    return {"op": 0, "t": event, "s": seq, "d": data}


def ready(seq: int = 1, session_id: str = "abc123") -> dict[str, Any]:
    return dispatch("READY", {"session_id": session_id, "v": 10}, seq)


def member_add(guild_id: str = GUILD_ID, seq: int = 2, **user: Any) -> dict[str, Any]:
    user_block = {"username": "alice", "id": "123456789012345678", "avatar": None, "discriminator": "0"}
    user_block.update(user)
    return dispatch("GUILD_MEMBER_ADD", {"guild_id": guild_id, "user": user_block}, seq)


@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def fatal() -> list:
    return []


@pytest.fixture
def make_session(loop, gateway, dispatcher, fatal):
    def _make(max_attempts: int = 5, base_delay_ms: int = 1000) -> GatewaySession:
        return GatewaySession(
            token=TOKEN,
            guild_id=GUILD_ID,
            connect=gateway,
            dispatcher=dispatcher,
            policy=ReconnectPolicy(max_attempts=max_attempts, base_delay_ms=base_delay_ms),
            loop=loop,
            on_fatal=fatal.append,
        )
    return _make


@pytest.fixture
def session(make_session) -> GatewaySession:
    return make_session()


def bring_up(session: GatewaySession, gateway: FakeGateway, interval: int = 41250, seq: int = 1) -> FakeTransport:
    """Drive a started or reconnecting session through Hello/Identify to ACTIVE."""
    transport = gateway.current
    transport.connect()
    transport.deliver(hello(interval))
    transport.deliver(ready(seq))
    return transport
