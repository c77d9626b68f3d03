"""
Gateway WebSocket transport.

One GatewayTransport per connection attempt. Frames, open and close are
reported through plain callbacks invoked on the event loop; `send()` only
enqueues, a writer task drains the outbox. A transport closed locally via
`close()` never reports on_close.
"""

import asyncio
import logging
from typing import Callable, Optional, Union

import websockets

from mayu.errors import ConnectionError

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "wss://gateway.discord.gg/?v=10&encoding=json"
MAX_FRAME_SIZE = 2**22

OnOpen = Callable[[], None]
OnFrame = Callable[[Union[str, bytes]], None]
OnClose = Callable[[Optional[int], str], None]


class GatewayTransport:
    def __init__(
        self,
        url: str,
        on_open: OnOpen,
        on_frame: OnFrame,
        on_close: OnClose,
        max_size: int = MAX_FRAME_SIZE,
    ):
        self._url = url
        self._on_open = on_open
        self._on_frame = on_frame
        self._on_close = on_close
        self._max_size = max_size
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._ws: Optional[websockets.ClientConnection] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def open(self) -> bool:
        return self._ws is not None and not self._closed

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name="gateway-transport")

    def send(self, text: str) -> None:
        if self._closed:
            raise ConnectionError("Gateway transport is closed")
        self._outbox.put_nowait(text)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._task and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        code: Optional[int] = None
        reason = ""
        try:
            async with websockets.connect(self._url, max_size=self._max_size) as ws:
                self._ws = ws
                self._on_open()
                writer = asyncio.create_task(self._write_loop(ws), name="gateway-writer")
                try:
                    async for raw in ws:
                        if self._closed:
                            break
                        self._on_frame(raw)
                finally:
                    writer.cancel()
                code, reason = ws.close_code, ws.close_reason or ""
        except websockets.ConnectionClosed as e:
            if e.rcvd is not None:
                code, reason = e.rcvd.code, e.rcvd.reason
            else:
                reason = str(e)
        except (OSError, websockets.WebSocketException) as e:
            logger.error(f"Gateway transport error: {e}")
            reason = str(e) or type(e).__name__
        except asyncio.CancelledError:
            if self._closed:
                return
            raise
        except Exception as e:
            logger.exception("Gateway transport failed")
            reason = str(e) or type(e).__name__
        finally:
            self._ws = None

        if not self._closed:
            self._closed = True
            self._on_close(code, reason)

    async def _write_loop(self, ws: "websockets.ClientConnection") -> None:
        while True:
            text = await self._outbox.get()
            try:
                await ws.send(text)
            except websockets.ConnectionClosed:
                logger.debug("Gateway send dropped, connection closed")
                return


def open_transport(url: str, on_open: OnOpen, on_frame: OnFrame, on_close: OnClose) -> GatewayTransport:
    """Create and start a transport to `url`. Must be called with a running event loop."""
    transport = GatewayTransport(url, on_open, on_frame, on_close)
    transport.start()
    return transport
