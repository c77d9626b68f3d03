"""
Mayu error types — one code per failure class the gateway client knows about.
"""

from typing import Any, Optional


class MayuError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class MalformedEnvelope(MayuError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("malformed_envelope", message, details)


class ReconnectCeilingExceeded(MayuError):
    def __init__(self, attempts: int, max_attempts: int):
        super().__init__(
            "reconnect_ceiling",
            f"Max reconnect attempts reached ({attempts - 1}/{max_attempts})",
            {"attempts": attempts, "max_attempts": max_attempts},
        )
        self.attempts = attempts


class ConfigError(MayuError):
    def __init__(self, message: str, missing: Optional[list[str]] = None):
        super().__init__("config_error", message, {"missing": missing or []})


class NotificationError(MayuError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("notification_error", message, {"status_code": status_code})
        self.status_code = status_code


class ConnectionError(MayuError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)
