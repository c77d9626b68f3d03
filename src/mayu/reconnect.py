"""
Reconnect supervisor — exponential backoff with a ceiling on consecutive failures.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from mayu.errors import ReconnectCeilingExceeded

if TYPE_CHECKING:
    from mayu.session import Session

logger = logging.getLogger(__name__)


class ReconnectPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(5, ge=0)
    base_delay_ms: int = Field(1000, ge=0)


def backoff_delay(policy: ReconnectPolicy, attempts: int) -> int:
    """Delay in ms before the next attempt, given the failures already counted."""
    return policy.base_delay_ms * 2**attempts


class ReconnectSupervisor:
    def __init__(self, policy: ReconnectPolicy, loop: asyncio.AbstractEventLoop):
        self.policy = policy
        self._loop = loop
        self._pending: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, session: "Session", trigger: Callable[[], None]) -> int:
        """Count one more failure and schedule `trigger` after the backoff delay.

        Returns the delay in ms. Raises ReconnectCeilingExceeded, scheduling
        nothing, once the count passes `max_attempts`.
        """
        delay_ms = backoff_delay(self.policy, session.reconnect_attempts)
        session.reconnect_attempts += 1
        self.cancel()
        if session.reconnect_attempts > self.policy.max_attempts:
            raise ReconnectCeilingExceeded(session.reconnect_attempts, self.policy.max_attempts)

        logger.info(f"Reconnecting in {delay_ms}ms... Attempt {session.reconnect_attempts}")
        self._pending = self._loop.call_later(
            delay_ms / 1000, self._fire, session, session.reconnect_attempts, trigger,
        )
        return delay_ms

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, session: "Session", attempts: int, trigger: Callable[[], None]) -> None:
        self._pending = None
        if session.reconnect_attempts != attempts:
            logger.debug(f"Dropping stale reconnect trigger for attempt {attempts}")
            return
        trigger()
