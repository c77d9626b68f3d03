"""Basic unit tests for the mayu package."""

from mayu import (
    MayuBot,
    GatewaySession,
    MayuError,
    MalformedEnvelope,
    ReconnectCeilingExceeded,
    ConfigError,
    NotificationError,
    ConnectionError,
    GatewayEvent,
    Intents,
    Phase,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert MayuBot is not None
    assert GatewaySession is not None


def test_error_hierarchy():
    for error in (MalformedEnvelope, ReconnectCeilingExceeded, ConfigError, NotificationError, ConnectionError):
        assert issubclass(error, MayuError)


def test_error_attributes():
    err = MayuError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    missing = ConfigError("missing stuff", missing=["TOKEN"])
    assert missing.code == "config_error"
    assert missing.details == {"missing": ["TOKEN"]}

    ceiling = ReconnectCeilingExceeded(attempts=6, max_attempts=5)
    assert ceiling.code == "reconnect_ceiling"
    assert str(ceiling) == "Max reconnect attempts reached (5/5)"


def test_event_constants():
    assert GatewayEvent.GUILD_MEMBER_ADD == "GUILD_MEMBER_ADD"
    assert GatewayEvent.READY == "READY"
    assert Intents.DEFAULT == 1 << 1


def test_phases():
    assert [p.value for p in Phase] == [
        "disconnected", "connecting", "awaiting_hello", "identifying", "active", "closing",
    ]
