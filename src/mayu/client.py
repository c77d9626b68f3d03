"""
MayuBot — wires the gateway session to the welcome notifier and runs it.
"""

import asyncio
import functools
import logging
from typing import Optional

from mayu.config import Settings
from mayu.errors import ReconnectCeilingExceeded
from mayu.notifier import NotificationDispatcher, Notifier, WelcomeNotifier
from mayu.session import GatewaySession, TransportFactory
from mayu.transport.http import HttpClient
from mayu.transport.websocket import open_transport

logger = logging.getLogger(__name__)


class MayuBot:
    def __init__(
        self,
        settings: Settings,
        notifier: Optional[Notifier] = None,
        connect: Optional[TransportFactory] = None,
    ):
        self._settings = settings
        self._notifier = notifier
        self._connect = connect or functools.partial(open_transport, settings.gateway_url)
        self._session: Optional[GatewaySession] = None
        self._fatal: Optional[asyncio.Future[None]] = None

    @property
    def session(self) -> Optional[GatewaySession]:
        return self._session

    async def run(self) -> None:
        """Run until the reconnect ceiling is exceeded (raises) or the task is cancelled."""
        loop = asyncio.get_running_loop()
        self._fatal = loop.create_future()

        http: Optional[HttpClient] = None
        notifier = self._notifier
        if notifier is None:
            http = HttpClient(token=self._settings.token, base_url=self._settings.api_base)
            notifier = WelcomeNotifier(
                http, self._settings.welcome_channel_id, self._settings.welcome_message,
            )
        dispatcher = NotificationDispatcher(notifier, loop)

        self._session = GatewaySession(
            token=self._settings.token,
            guild_id=self._settings.guild_id,
            connect=self._connect,
            dispatcher=dispatcher,
            policy=self._settings.reconnect_policy,
            intents=self._settings.intents,
            loop=loop,
            on_fatal=self._on_fatal,
        )
        logger.info(f"Starting Mayu for guild {self._settings.guild_id}")
        self._session.start()
        try:
            await self._fatal
        finally:
            self._session.stop()
            await dispatcher.drain()
            if http is not None:
                await http.close()

    def _on_fatal(self, error: ReconnectCeilingExceeded) -> None:
        if self._fatal is not None and not self._fatal.done():
            self._fatal.set_exception(error)
