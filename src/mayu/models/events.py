"""
Gateway dispatch event names and intent bits.
"""


class GatewayEvent:
    """Dispatch `t` values this client reacts to."""
    READY = "READY"
    GUILD_MEMBER_ADD = "GUILD_MEMBER_ADD"


class Intents:
    """Capability bits requested in Identify."""
    GUILDS = 1 << 0
    GUILD_MEMBERS = 1 << 1

    DEFAULT = GUILD_MEMBERS
