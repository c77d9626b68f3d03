"""
Heartbeat timer — fixed-cadence liveness ticks driven by loop.call_later.

Each start() opens a new generation; a tick scheduled under an older
generation is dropped on arrival, so a timer from a torn-down connection
can never beat into the next one.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class HeartbeatTimer:
    def __init__(self, loop: asyncio.AbstractEventLoop, on_beat: Callable[[], None]):
        self._loop = loop
        self._on_beat = on_beat
        self._handle: Optional[asyncio.TimerHandle] = None
        self._generation = 0
        self._interval_ms: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def interval_ms(self) -> Optional[int]:
        return self._interval_ms

    @property
    def generation(self) -> int:
        return self._generation

    def start(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError(f"heartbeat interval must be positive, got {interval_ms}")
        self.stop()
        self._interval_ms = interval_ms
        self._arm(self._generation, interval_ms)
        logger.debug(f"Heartbeat started every {interval_ms}ms")

    def stop(self) -> None:
        self._generation += 1
        self._interval_ms = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self, generation: int, interval_ms: int) -> None:
        self._handle = self._loop.call_later(interval_ms / 1000, self._fire, generation, interval_ms)

    def _fire(self, generation: int, interval_ms: int) -> None:
        if generation != self._generation:
            return
        self._handle = None
        # re-arm before beating
        self._arm(generation, interval_ms)
        self._on_beat()
