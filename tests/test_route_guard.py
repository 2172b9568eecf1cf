from __future__ import annotations

import pytest

from portalgate.core.events import EventBus
from portalgate.core.guard import GuardOutcome, RouteGuard
from portalgate.core.guard.models import NOTICE_ADMIN_PATH, NOTICE_NO_MODULE
from portalgate.core.identity import InMemoryIdentityProvider, UserRole
from portalgate.core.impersonation import ImpersonatedUser, ImpersonationContext
from portalgate.core.notices import NoticeCenter
from portalgate.core.permissions import ModuleKey
from portalgate.core.permissions.defaults import ADMIN_ONLY_PATHS, PATH_TO_MODULE
from portalgate.core.simulation import RoleSimulationContext

from .helpers.builders import signed_in_identity

UNMAPPED = ["/", "/profile", "/settings", "/help/faq", "/onboarding"]


def _guard(identity=None, **kwargs):  # noqa: ANN001
    identity = identity or signed_in_identity(UserRole.admin)
    sim = RoleSimulationContext(identity=identity)
    guard = RouteGuard(identity=identity, simulation=sim, **kwargs)
    return guard, sim


def test_loading_renders_placeholder_without_redirect():
    ident = InMemoryIdentityProvider()
    guard, _ = _guard(ident)
    d = guard.evaluate("/analytics")
    assert d.outcome == GuardOutcome.loading
    assert d.redirect_to is None
    assert not d.renders_children


def test_unauthenticated_redirects_to_sign_in_with_replace():
    ident = InMemoryIdentityProvider()
    ident.finish_loading()
    guard, _ = _guard(ident)
    d = guard.evaluate("/dashboard")
    assert d.outcome == GuardOutcome.unauthenticated
    assert d.redirect_to == "/auth"
    assert d.replace is True


def test_without_simulation_everything_renders():
    guard, _ = _guard()
    for p in list(ADMIN_ONLY_PATHS) + list(PATH_TO_MODULE) + UNMAPPED:
        assert guard.evaluate(p).renders_children, p


def test_scenario_module_map_decides_mapped_paths():
    guard, sim = _guard()
    sim.start_simulation(UserRole.basic_client, {ModuleKey.dashboard: True, ModuleKey.analytics: False})

    d = guard.evaluate("/analytics")
    assert d.outcome == GuardOutcome.blocked_module
    assert d.redirect_to == "/dashboard"
    assert d.replace is True
    assert d.required_module == ModuleKey.analytics
    assert d.notice == NOTICE_NO_MODULE

    d = guard.evaluate("/dashboard")
    assert d.renders_children
    assert d.required_module == ModuleKey.dashboard


def test_scenario_admin_path_notifies_once_per_visit():
    notices = NoticeCenter()
    bus = EventBus()
    blocked = []
    bus.subscribe("guard.blocked", lambda ev: blocked.append(ev.payload["path"]))
    guard, sim = _guard(notices=notices, event_bus=bus)
    sim.start_simulation(UserRole.employee, {k: True for k in ModuleKey})

    decisions = [guard.evaluate("/client-management") for _ in range(3)]
    assert all(d.redirect_to == "/dashboard" for d in decisions)
    assert all(d.outcome == GuardOutcome.blocked_admin_path for d in decisions)
    assert [d.notice for d in decisions] == [NOTICE_ADMIN_PATH, None, None]
    assert len(notices.pending()) == 1
    assert blocked == ["/client-management"]

    # leaving and coming back is a new visit
    guard.evaluate("/dashboard")
    assert guard.evaluate("/client-management").notice == NOTICE_ADMIN_PATH
    assert len(notices.drain()) == 2


def test_admin_only_short_circuits_module_grants():
    guard, sim = _guard(resolver=None)
    sim.start_simulation(UserRole.admin, {k: True for k in ModuleKey})
    d = guard.evaluate("/status", ModuleKey.dashboard)
    assert d.outcome == GuardOutcome.blocked_admin_path
    assert d.required_module is None


@pytest.mark.parametrize("path", list(ADMIN_ONLY_PATHS))
def test_admin_paths_always_redirect_under_simulation(path):
    guard, sim = _guard()
    sim.start_simulation(UserRole.team_manager, {k: True for k in ModuleKey})
    d = guard.evaluate(path)
    assert d.redirect_to == "/dashboard"
    assert not d.renders_children


@pytest.mark.parametrize("path,module", list(PATH_TO_MODULE.items()))
def test_mapped_paths_follow_module_grant(path, module):
    guard, sim = _guard()
    sim.start_simulation(UserRole.premium_client, {module: True})
    assert guard.evaluate(path).renders_children

    sim.stop_simulation()
    grants = {k: True for k in ModuleKey}
    grants[module] = False
    sim.start_simulation(UserRole.premium_client, grants)
    d = guard.evaluate(path)
    assert not d.renders_children
    if path == "/dashboard":
        # the default route is never redirected onto itself
        assert d.redirect_to is None
    else:
        assert d.redirect_to == "/dashboard"


@pytest.mark.parametrize("path", UNMAPPED)
def test_unmapped_paths_render_under_any_simulation(path):
    guard, sim = _guard()
    sim.start_simulation(UserRole.demo, {})
    assert guard.evaluate(path).renders_children


def test_stop_leaves_no_residue():
    guard, sim = _guard()
    sim.start_simulation(UserRole.demo, {})
    for p in PATH_TO_MODULE:
        guard.evaluate(p)
    assert sim.stop_simulation() is True

    fresh, _ = _guard()
    for p in list(ADMIN_ONLY_PATHS) + list(PATH_TO_MODULE) + UNMAPPED:
        assert guard.evaluate(p).model_dump() == fresh.evaluate(p).model_dump(), p


def test_impersonation_alone_never_blocks():
    ident = signed_in_identity(UserRole.admin)
    guard, sim = _guard(ident)
    imp = ImpersonationContext(identity=ident)
    imp.start_impersonation(ImpersonatedUser(id="u-x", name="Xavier", client_id="c-1"))
    assert not sim.is_simulating
    assert guard.evaluate("/analytics").renders_children
    assert guard.evaluate("/client-management").renders_children


def test_explicit_module_key_on_unmapped_route():
    guard, sim = _guard()
    sim.start_simulation(UserRole.employee, {ModuleKey.reports: False})
    d = guard.evaluate("/exports", ModuleKey.reports)
    assert d.outcome == GuardOutcome.blocked_module
    assert d.required_module == ModuleKey.reports


def test_custom_routes():
    from portalgate.core.guard import RoutesConfig

    ident = InMemoryIdentityProvider()
    ident.finish_loading()
    guard, _ = _guard(ident, routes=RoutesConfig(sign_in_route="/login", default_route="/home"))
    assert guard.evaluate("/x").redirect_to == "/login"

    with pytest.raises(ValueError):
        RoutesConfig(default_route="home")


def test_sign_in_required_blocks_an_authenticated_identity():
    blocked = {"on": False}
    guard, sim = _guard(sign_in_required=lambda: blocked["on"])
    assert guard.evaluate("/analytics").renders_children

    blocked["on"] = True
    d = guard.evaluate("/analytics")
    assert d.outcome == GuardOutcome.sign_in_required
    assert d.redirect_to == "/auth"
    assert d.replace is True
    assert not d.renders_children
    # unmapped and default routes are closed too, and no notice is pushed
    assert guard.evaluate("/profile").redirect_to == "/auth"
    assert guard.evaluate("/dashboard").redirect_to == "/auth"
    sim.start_simulation(UserRole.employee, {ModuleKey.analytics: True})
    assert guard.evaluate("/analytics").outcome == GuardOutcome.sign_in_required
    assert guard.notices.drain() == []


def test_failed_idle_sign_out_closes_every_page(clock, timers):
    from .helpers.builders import build_session
    from .helpers.fakes import FlakyRevoke

    ident = signed_in_identity(UserRole.employee, user_id="u-emp", revoke=FlakyRevoke(failures=5))
    s = build_session(identity=ident, clock=clock, timers=timers, timeout={"idle_threshold_seconds": 100, "warning_window_seconds": 10})
    assert s.guard.evaluate("/analytics").renders_children

    clock.advance(200)
    s.timeout.tick()
    assert s.timeout.sign_in_required
    assert s.identity.snapshot().is_authenticated
    d = s.guard.evaluate("/analytics")
    assert d.outcome == GuardOutcome.sign_in_required
    assert d.redirect_to == "/auth"

    # signing in again lifts the block
    ident.sign_in(ident.snapshot().user)
    assert not s.timeout.sign_in_required
    assert s.guard.evaluate("/analytics").renders_children
