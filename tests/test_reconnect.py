"""Backoff delays and the consecutive-failure ceiling."""

import pytest
from pydantic import ValidationError

from mayu.errors import ReconnectCeilingExceeded
from mayu.reconnect import ReconnectPolicy, ReconnectSupervisor, backoff_delay
from mayu.session import Session


def test_default_policy():
    policy = ReconnectPolicy()
    assert policy.max_attempts == 5
    assert policy.base_delay_ms == 1000


def test_policy_is_immutable():
    policy = ReconnectPolicy()
    with pytest.raises(ValidationError):
        policy.max_attempts = 10


def test_backoff_doubles():
    policy = ReconnectPolicy(base_delay_ms=250)
    assert [backoff_delay(policy, n) for n in range(5)] == [250, 500, 1000, 2000, 4000]


def test_schedule_counts_and_delays(loop):
    supervisor = ReconnectSupervisor(ReconnectPolicy(max_attempts=4, base_delay_ms=100), loop)
    session = Session()
    fired = []
    delays = [supervisor.schedule(session, lambda: fired.append(loop.time)) for _ in range(4)]
    assert delays == [100, 200, 400, 800]
    assert session.reconnect_attempts == 4
    # each schedule replaces the previous trigger
    assert len(loop.scheduled) == 1


def test_ceiling_raises_without_scheduling(loop):
    supervisor = ReconnectSupervisor(ReconnectPolicy(max_attempts=2, base_delay_ms=100), loop)
    session = Session(reconnect_attempts=2)
    with pytest.raises(ReconnectCeilingExceeded) as exc:
        supervisor.schedule(session, lambda: None)
    assert exc.value.attempts == 3
    assert exc.value.details == {"attempts": 3, "max_attempts": 2}
    assert not supervisor.pending
    assert loop.scheduled == []


def test_trigger_fires_after_delay(loop):
    supervisor = ReconnectSupervisor(ReconnectPolicy(base_delay_ms=500), loop)
    session = Session()
    fired = []
    supervisor.schedule(session, lambda: fired.append(loop.time))
    loop.advance(0.4)
    assert fired == []
    loop.advance(0.1)
    assert fired == [0.5]
    assert not supervisor.pending


def test_trigger_for_superseded_count_is_dropped(loop):
    supervisor = ReconnectSupervisor(ReconnectPolicy(base_delay_ms=500), loop)
    session = Session()
    fired = []
    supervisor.schedule(session, lambda: fired.append(1))
    session.reconnect_attempts = 0
    loop.advance(1.0)
    assert fired == []


def test_cancel(loop):
    supervisor = ReconnectSupervisor(ReconnectPolicy(), loop)
    fired = []
    supervisor.schedule(Session(), lambda: fired.append(1))
    supervisor.cancel()
    loop.advance(100)
    assert fired == []
