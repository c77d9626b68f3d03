"""
Process configuration — read from environment variables and an optional .env file.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mayu.errors import ConfigError
from mayu.models.events import Intents
from mayu.reconnect import ReconnectPolicy
from mayu.transport.http import DEFAULT_API_BASE
from mayu.transport.websocket import DEFAULT_GATEWAY_URL

DEFAULT_WELCOME_MESSAGE = "Welcome to the server, {{USERNAME}}! 🎉\n Please be sure to read the rules!"


def unquote(value: str) -> str:
    """Drop one leading and one trailing double quote."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


class Settings(BaseSettings):
    """Validated settings for the bot. Environment variable names are the field aliases."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    token: str = Field(alias="TOKEN", repr=False)
    guild_id: str = Field(alias="GUILD_ID")
    welcome_channel_id: str = Field(alias="WELCOME_CHANNEL_ID")
    welcome_message: str = Field(DEFAULT_WELCOME_MESSAGE, alias="WELCOME_MESSAGE")
    gateway_url: str = Field(DEFAULT_GATEWAY_URL, alias="GATEWAY_URL")
    api_base: str = Field(DEFAULT_API_BASE, alias="API_BASE")
    intents: int = Field(Intents.DEFAULT, alias="INTENTS")
    max_reconnect_attempts: int = Field(5, ge=0, alias="MAX_RECONNECT_ATTEMPTS")
    reconnect_base_delay_ms: int = Field(1000, ge=0, alias="RECONNECT_BASE_DELAY_MS")

    @field_validator("welcome_message")
    @classmethod
    def strip_quotes(cls, value: str) -> str:
        return unquote(value)

    @property
    def reconnect_policy(self) -> ReconnectPolicy:
        return ReconnectPolicy(
            max_attempts=self.max_reconnect_attempts,
            base_delay_ms=self.reconnect_base_delay_ms,
        )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from the environment plus ./.env (or `env_file` instead).

    Raises ConfigError naming every missing variable, or every invalid one.
    """
    kwargs: dict[str, Any] = {}
    if env_file is not None:
        kwargs["_env_file"] = env_file
    try:
        return Settings(**kwargs)
    except ValidationError as e:
        errors = e.errors()
        missing = [str(err["loc"][0]) for err in errors if err["type"] == "missing"]
        if missing:
            raise ConfigError(
                f"Missing required environment variables ({', '.join(missing)})",
                missing=missing,
            ) from e
        bad = [str(err["loc"][0]) for err in errors]
        raise ConfigError(f"Invalid configuration values ({', '.join(bad)})") from e
