from __future__ import annotations

import json
import os

import pytest

from portalgate.core.context import use_impersonation, use_role_simulation, use_session_timeout
from portalgate.core.errors import ContextMisuseError
from portalgate.core.events import EventLogger
from portalgate.core.identity import InMemoryIdentityProvider, UserRole
from portalgate.core.impersonation import ImpersonatedUser
from portalgate.core.session_timeout import SessionPhase

from .helpers.builders import build_session, principal


def test_sign_in_starts_monitor(clock, timers):
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers)
    assert s.timeout.state().phase == SessionPhase.signed_out
    assert timers.live == []

    ident.sign_in(principal())
    assert s.timeout.state().phase == SessionPhase.active
    assert len(timers.live) == 1


def test_sign_out_clears_overlays_and_timer(clock, timers):
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers)
    ident.sign_in(principal())
    s.simulation.start_simulation(UserRole.employee, {"tasks": True})
    s.impersonation.start_impersonation(ImpersonatedUser(id="u-9", name="Nine"))

    ident.sign_out()
    assert not s.simulation.is_simulating
    assert not s.impersonation.is_impersonating
    assert timers.live == []
    assert s.timeout.state().phase == SessionPhase.signed_out
    assert s.guard.evaluate("/tasks").redirect_to == "/auth"


def test_idle_expiry_ends_overlays(clock, timers):
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers, timeout={"idle_threshold_seconds": 100, "warning_window_seconds": 10})
    ident.sign_in(principal())
    s.simulation.start_simulation(UserRole.demo, {})
    clock.advance(101)
    timers.live[0].fire()
    assert not ident.snapshot().is_authenticated
    assert not s.simulation.is_simulating
    assert s.timeout.state().phase == SessionPhase.signed_out


def test_new_principal_does_not_inherit_overlays(clock, timers):
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers)
    ident.sign_in(principal("u-a", UserRole.super_admin))
    s.simulation.start_simulation(UserRole.admin, {})
    ident.sign_in(principal("u-b", UserRole.admin))
    assert not s.simulation.is_simulating
    assert s.timeout.state().phase == SessionPhase.active


def test_extend_with_same_principal_keeps_single_timer(clock, timers):
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers)
    ident.sign_in(principal())
    ident.sign_in(principal())
    s.timeout.extend_session()
    assert len(timers.live) == 1


def test_provide_binds_context():
    s = build_session()
    with pytest.raises(ContextMisuseError):
        use_role_simulation()
    with s.provide():
        assert use_role_simulation() is s.simulation
        assert use_impersonation() is s.impersonation
        assert use_session_timeout() is s.timeout
    with pytest.raises(ContextMisuseError) as ei:
        use_session_timeout()
    assert ei.value.code == "context_misuse"
    assert ei.value.recoverable is False


def test_nested_provide_restores_outer():
    outer, inner = build_session(), build_session()
    with outer.provide():
        with inner.provide():
            assert use_role_simulation() is inner.simulation
        assert use_role_simulation() is outer.simulation


def test_events_journaled(tmp_path, clock, timers):
    path = os.path.join(str(tmp_path), "events.jsonl")
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers, event_journal=EventLogger(path))
    ident.sign_in(principal())
    s.simulation.start_simulation(UserRole.demo, {"dashboard": True})
    s.simulation.stop_simulation()
    with open(path, "r", encoding="utf-8") as f:
        lines = [json.loads(x) for x in f if x.strip()]
    assert [x["event"] for x in lines] == ["simulation.started", "simulation.stopped"]


def test_close_cancels_timer(clock, timers):
    ident = InMemoryIdentityProvider()
    s = build_session(identity=ident, clock=clock, timers=timers)
    ident.sign_in(principal())
    s.close()
    assert timers.live == []
    # unsubscribed: later identity changes no longer restart the monitor
    ident.sign_in(principal("u-other"))
    assert timers.live == []
