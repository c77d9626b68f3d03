"""
Welcome notifier — turns a member join into a posted embed.

Delivery is fire-and-forget: NotificationDispatcher.submit() schedules a task
and returns; failures are logged and dropped, never retried and never seen
by the gateway session.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from mayu.models.member import MemberJoinedNotification
from mayu.transport.http import HttpClient

logger = logging.getLogger(__name__)

CDN_BASE_URL = "https://cdn.discordapp.com"
DEFAULT_AVATAR_VARIANTS = 5
USERNAME_PLACEHOLDER = "{{USERNAME}}"

EMBED_TITLE = "Welcome to the Server!"
EMBED_COLOR = 0x3498DB
EMBED_FOOTER = "Powered by Mayu"


def default_avatar_index(user_id: str, discriminator: Optional[str]) -> int:
    """Pick one of the default avatars: by user id for migrated usernames (discriminator "0"), else by discriminator."""
    if not discriminator or discriminator == "0":
        return int(user_id) % DEFAULT_AVATAR_VARIANTS
    return int(discriminator) % DEFAULT_AVATAR_VARIANTS


def avatar_url(user_id: str, avatar_hash: Optional[str], discriminator: Optional[str]) -> str:
    if avatar_hash:
        return f"{CDN_BASE_URL}/avatars/{user_id}/{avatar_hash}.png?size=128"
    return f"{CDN_BASE_URL}/embed/avatars/{default_avatar_index(user_id, discriminator)}.png"


def build_welcome_embed(
    member: MemberJoinedNotification,
    template: str,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "title": EMBED_TITLE,
        "description": template.replace(USERNAME_PLACEHOLDER, member.username, 1),
        "color": EMBED_COLOR,
        "timestamp": timestamp,
        "footer": {"text": EMBED_FOOTER},
        "thumbnail": {"url": avatar_url(member.user_id, member.avatar_hash, member.discriminator)},
    }


class Notifier(Protocol):
    async def notify(self, member: MemberJoinedNotification) -> None: ...


class WelcomeNotifier:
    """Posts the welcome embed to one channel."""

    def __init__(self, http: HttpClient, channel_id: str, template: str):
        self._http = http
        self._channel_id = channel_id
        self._template = template

    async def notify(self, member: MemberJoinedNotification) -> None:
        embed = build_welcome_embed(member, self._template)
        await self._http.post(f"/channels/{self._channel_id}/messages", {"embeds": [embed]})
        logger.info(f"Sent welcome embed for {member.username}")


class NotificationDispatcher:
    """Runs each notification as its own task so the caller never waits on delivery."""

    def __init__(self, notifier: Notifier, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._notifier = notifier
        self._loop = loop
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, member: MemberJoinedNotification) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._deliver(member), name=f"welcome-{member.user_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, member: MemberJoinedNotification) -> None:
        try:
            await self._notifier.notify(member)
        except Exception as e:
            logger.error(f"Error sending welcome embed for {member.username}: {e}")

    async def drain(self) -> None:
        """Wait for in-flight deliveries."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
