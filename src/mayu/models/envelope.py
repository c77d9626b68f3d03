"""
Gateway envelope — the `{op, d, s, t}` unit exchanged over the socket.
"""

from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Opcode(IntEnum):
    DISPATCH = 0
    HEARTBEAT = 1
    IDENTIFY = 2
    RECONNECT = 7
    HELLO = 10
    HEARTBEAT_ACK = 11


class Envelope(BaseModel):
    op: int
    d: Any = None
    s: Optional[int] = None  # Dispatch only
    t: Optional[str] = None  # Dispatch only

    @property
    def opcode(self) -> Optional[Opcode]:
        """The known opcode for `op`, or None for values this client does not handle."""
        try:
            return Opcode(self.op)
        except ValueError:
            return None


class HelloParameters(BaseModel):
    """Hello payload.d"""
    model_config = ConfigDict(extra="ignore")

    heartbeat_interval: int = Field(gt=0)  # milliseconds


class ConnectionProperties(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    os: str = Field("linux", alias="$os")
    browser: str = Field("custom", alias="$browser")
    device: str = Field("custom", alias="$device")


class IdentifyData(BaseModel):
    """Identify payload.d"""
    token: str
    intents: int
    properties: ConnectionProperties = ConnectionProperties()
