"""
Envelope construction and parsing — the JSON wire codec for gateway frames.
"""

from typing import Any, Union

from pydantic import ValidationError

from mayu.errors import MalformedEnvelope
from mayu.models.envelope import Envelope, Opcode


def build_envelope(opcode: Opcode, data: Any = None) -> Envelope:
    """Build an outbound (client to gateway) envelope. `s` and `t` are never set by the client."""
    return Envelope(op=int(opcode), d=data)


def encode_envelope(envelope: Envelope) -> str:
    """Serialize to wire text. `d` is always written, `s`/`t` only when present."""
    exclude = {name for name in ("s", "t") if getattr(envelope, name) is None}
    return envelope.model_dump_json(exclude=exclude)


def decode_envelope(raw: Union[str, bytes]) -> Envelope:
    """Parse an inbound frame. Raises MalformedEnvelope if it is not a JSON object with an integer `op`."""
    try:
        return Envelope.model_validate_json(raw)
    except ValidationError as e:
        preview = raw[:200] if isinstance(raw, str) else raw[:200].decode("utf-8", "replace")
        raise MalformedEnvelope(f"Invalid gateway frame: {e.error_count()} error(s)", {"raw": preview}) from e
