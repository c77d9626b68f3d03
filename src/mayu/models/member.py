"""
Member models — GUILD_MEMBER_ADD payload.d.user.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MemberJoinedNotification(BaseModel):
    """The one payload handed to the Notifier."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    username: str
    user_id: str = Field(alias="id")
    avatar_hash: Optional[str] = Field(None, alias="avatar")
    discriminator: Optional[str] = None
