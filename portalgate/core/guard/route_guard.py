from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Set, Union

from portalgate.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from portalgate.core.guard.models import NOTICE_ADMIN_PATH, NOTICE_NO_MODULE, GuardDecision, GuardOutcome, RoutesConfig
from portalgate.core.identity.provider import IdentityProvider
from portalgate.core.logger import get_logger
from portalgate.core.notices import Notice, NoticeCenter, NoticeLevel
from portalgate.core.permissions.models import ModuleKey
from portalgate.core.permissions.resolver import ModulePermissionResolver, default_resolver, normalize_path
from portalgate.core.simulation.manager import RoleSimulationContext


class RouteGuard:
    """
    Per-navigation ALLOW / REDIRECT decision.

    Rules (first match wins):
    1) identity loading            -> loading placeholder, no redirect
    2) no principal                -> redirect to sign-in (replace)
       (also when the idle monitor could not sign out and now requires sign-in)
    3) no simulation               -> allow; the real principal is enforced by the backend
    4) simulation + admin-only     -> redirect to default route, one-time notice
    5) simulation + module denied  -> redirect to default route, one-time notice

    One instance corresponds to one mounted guard. It remembers which paths already
    produced a notice and forgets them as soon as the path changes.
    """

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        simulation: RoleSimulationContext,
        resolver: Optional[ModulePermissionResolver] = None,
        routes: Optional[RoutesConfig] = None,
        notices: Optional[NoticeCenter] = None,
        event_bus: Any = None,
        sign_in_required: Optional[Callable[[], bool]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.identity = identity
        self.simulation = simulation
        self.resolver = resolver or default_resolver()
        self.routes = routes or RoutesConfig()
        self.notices = notices or NoticeCenter()
        self.event_bus = event_bus
        self._sign_in_required = sign_in_required or (lambda: False)
        self.logger = logger or get_logger("guard")
        self._lock = threading.Lock()
        self._current_path: Optional[str] = None
        self._notified: Set[str] = set()

    def evaluate(self, path: str, module_key: Optional[Union[ModuleKey, str]] = None) -> GuardDecision:
        p = normalize_path(path)
        self._observe_path(p)

        ident = self.identity.snapshot()
        if ident.loading:
            return GuardDecision(outcome=GuardOutcome.loading, path=p)
        if not ident.is_authenticated:
            return GuardDecision(outcome=GuardOutcome.unauthenticated, path=p, redirect_to=self.routes.sign_in_route, replace=True)
        if self._sign_in_required():
            return GuardDecision(outcome=GuardOutcome.sign_in_required, path=p, redirect_to=self.routes.sign_in_route, replace=True)

        # One snapshot for the whole decision.
        sim = self.simulation.snapshot()
        if not sim.is_simulating:
            return GuardDecision(outcome=GuardOutcome.allowed, path=p)

        if self.resolver.is_admin_only_path(p):
            return self._block(p, GuardOutcome.blocked_admin_path, NOTICE_ADMIN_PATH, required=None)

        required = self.resolver.resolve_required_module(p, module_key)
        if required is not None and sim.simulated_modules is not None and not sim.simulated_modules.get(required, False):
            return self._block(p, GuardOutcome.blocked_module, NOTICE_NO_MODULE, required=required)
        return GuardDecision(outcome=GuardOutcome.allowed, path=p, required_module=required)

    def reset(self) -> None:
        """Unmount: forget the notified paths."""
        with self._lock:
            self._current_path = None
            self._notified.clear()

    # ---- internals ----
    def _observe_path(self, path: str) -> None:
        with self._lock:
            if path != self._current_path:
                self._current_path = path
                self._notified.clear()

    def _claim_notice(self, path: str) -> bool:
        with self._lock:
            if path in self._notified:
                return False
            self._notified.add(path)
            return True

    def _block(self, path: str, outcome: GuardOutcome, message: str, *, required: Optional[ModuleKey]) -> GuardDecision:
        # Never redirect a route onto itself; the default route renders as blocked instead.
        redirect_to = self.routes.default_route if path != normalize_path(self.routes.default_route) else None
        notice = None
        if self._claim_notice(path):
            notice = message
            self.notices.push(Notice(level=NoticeLevel.error, message=message, path=path, code=outcome.value))
            self._publish(path, outcome, required)
        self.logger.debug("Guard redirect: path=%s outcome=%s module=%s", path, outcome.value, getattr(required, "value", None))
        return GuardDecision(outcome=outcome, path=path, redirect_to=redirect_to, replace=redirect_to is not None, required_module=required, notice=notice)

    def _publish(self, path: str, outcome: GuardOutcome, required: Optional[ModuleKey]) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(
            BaseEvent(
                event_type="guard.blocked",
                source_subsystem=SourceSubsystem.guard,
                severity=EventSeverity.INFO,
                payload={"path": path, "outcome": outcome.value, "required_module": getattr(required, "value", None)},
            )
        )
