from __future__ import annotations

import pytest

from portalgate.core.directory import DirectoryUser, InMemoryDirectory
from portalgate.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from portalgate.core.identity import UserRole
from portalgate.core.impersonation import ImpersonatedUser, ImpersonationContext, ImpersonationState
from portalgate.core.simulation import RoleSimulationContext

from .helpers.builders import signed_in_identity

TARGET = ImpersonatedUser(id="u-42", name="Grace Client", email="grace@example.com", client_id="c-7", client_name="Acme")


def _ctx(role=UserRole.admin, **kwargs):  # noqa: ANN001
    return ImpersonationContext(identity=signed_in_identity(role), **kwargs)


def test_start_and_stop_are_audited(audit, clock):
    ctx = _ctx(audit_logger=audit, now=clock.time)
    st = ctx.start_impersonation(TARGET, reason="Support ticket 881")
    assert ctx.is_impersonating
    assert ctx.impersonated_user == TARGET
    assert st.started_at == clock.time()

    clock.advance(90)
    assert ctx.stop_impersonation() is True
    start, stop = audit.events("impersonation.start")[0], audit.events("impersonation.stop")[0]
    assert start["actor_id"] == "u-admin"
    assert start["details"]["target_user_id"] == "u-42"
    assert start["details"]["reason"] == "Support ticket 881"
    assert stop["details"]["ended_at"] - stop["details"]["started_at"] == 90


def test_stop_is_idempotent(audit):
    ctx = _ctx(audit_logger=audit)
    ctx.start_impersonation(TARGET)
    assert ctx.stop_impersonation() is True
    assert ctx.stop_impersonation() is False
    assert ctx.snapshot() == ImpersonationState()
    assert len(audit.events("impersonation.stop")) == 1


def test_non_admin_cannot_impersonate(audit):
    ctx = _ctx(UserRole.team_manager, audit_logger=audit)
    assert not ctx.can_impersonate
    with pytest.raises(PermissionDeniedError):
        ctx.start_impersonation(TARGET)
    assert not ctx.is_impersonating
    assert audit.events("impersonation.start")[0]["outcome"] == "denied"


def test_cannot_impersonate_self():
    ctx = _ctx()
    with pytest.raises(ValidationError):
        ctx.start_impersonation(ImpersonatedUser(id="u-admin", name="Me"))


def test_switching_target_closes_previous_entry(audit):
    ctx = _ctx(audit_logger=audit)
    ctx.start_impersonation(TARGET)
    ctx.start_impersonation(ImpersonatedUser(id="u-43", name="Other"))
    stops = audit.events("impersonation.stop")
    assert [s["details"]["target_user_id"] for s in stops] == ["u-42"]
    assert stops[0]["details"]["reason"] == "switched"
    assert ctx.impersonated_user.id == "u-43"


def test_start_by_id_uses_directory():
    d = InMemoryDirectory()
    d.add_user(DirectoryUser(id="u-42", email="grace@example.com", name="Grace", client_id="c-7", client_name="Acme"))
    ctx = _ctx()
    ctx.start_impersonation_by_id("u-42", d)
    assert ctx.impersonated_user.name == "Grace"
    assert ctx.impersonated_user.client_name == "Acme"
    with pytest.raises(NotFoundError):
        ctx.start_impersonation_by_id("u-missing", d)


def test_acting_user_id_follows_overlay():
    ctx = _ctx()
    assert ctx.acting_user_id() == "u-admin"
    ctx.start_impersonation(TARGET)
    assert ctx.acting_user_id() == "u-42"
    ctx.stop_impersonation()
    assert ctx.acting_user_id() == "u-admin"


def test_coexists_with_simulation():
    ident = signed_in_identity(UserRole.super_admin)
    imp = ImpersonationContext(identity=ident)
    sim = RoleSimulationContext(identity=ident)
    imp.start_impersonation(TARGET)
    sim.start_simulation(UserRole.basic_client, {"dashboard": True})
    assert imp.is_impersonating and sim.is_simulating
    sim.stop_simulation()
    assert imp.is_impersonating
