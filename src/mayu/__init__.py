"""
mayu — Discord gateway welcome bot.

Keeps one gateway session alive (Hello/Identify, heartbeats, backoff
reconnects) and posts a welcome embed whenever a member joins the
configured guild.
"""

__version__ = "0.1.0"

from mayu.client import MayuBot
from mayu.config import Settings, load_settings
from mayu.errors import (
    MayuError,
    MalformedEnvelope,
    ReconnectCeilingExceeded,
    ConfigError,
    NotificationError,
    ConnectionError,
)
from mayu.models.envelope import Envelope, Opcode
from mayu.models.events import GatewayEvent, Intents
from mayu.models.member import MemberJoinedNotification
from mayu.session import GatewaySession, Phase, Session

__all__ = [
    "MayuBot",
    "Settings",
    "load_settings",
    "MayuError",
    "MalformedEnvelope",
    "ReconnectCeilingExceeded",
    "ConfigError",
    "NotificationError",
    "ConnectionError",
    "Envelope",
    "Opcode",
    "GatewayEvent",
    "Intents",
    "MemberJoinedNotification",
    "GatewaySession",
    "Phase",
    "Session",
]
