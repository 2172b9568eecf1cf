from __future__ import annotations

import contextlib
import logging
import os
import threading
from concurrent.futures import Executor
from typing import Any, Callable, Iterator, Optional

from portalgate.core.context import provide_impersonation, provide_role_simulation, provide_session_timeout
from portalgate.core.directory.base import Directory
from portalgate.core.events import EventBus, EventLogger
from portalgate.core.events.models import BaseEvent
from portalgate.core.guard.models import RoutesConfig
from portalgate.core.guard.route_guard import RouteGuard
from portalgate.core.identity.models import IdentitySnapshot
from portalgate.core.identity.provider import IdentityProvider
from portalgate.core.impersonation.manager import ImpersonationContext
from portalgate.core.logger import get_logger
from portalgate.core.notices import NoticeCenter
from portalgate.core.permissions.resolver import ModulePermissionResolver
from portalgate.core.security_events import SecurityAuditLogger
from portalgate.core.session_timeout.models import SessionPhase, SessionTimeoutConfig
from portalgate.core.session_timeout.monitor import SessionTimeoutMonitor, TimerFactory
from portalgate.core.simulation.manager import RoleSimulationContext
from portalgate.core.simulation.models import ConflictPolicy
from portalgate.core.ux.banners import ImpersonationBanner, RoleSimulationBanner
from portalgate.core.ux.details import OverlayDetailsLoader


class EventJournalSubscriber:
    """Mirrors every bus event into the JSONL event log."""

    def __init__(self, journal: EventLogger):
        self.journal = journal

    def __call__(self, ev: BaseEvent) -> None:
        self.journal.log(ev.trace_id or "-", ev.event_type, dict(ev.payload or {}))


class PortalSession:
    """
    One authenticated browsing session: identity plus its overlays and timeout.

    Overlay state follows the identity provider. Signing out (by hand or by the
    idle timeout) ends any simulation and impersonation and resets the monitor;
    signing in starts the monitor.
    """

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        timeout_cfg: Optional[SessionTimeoutConfig] = None,
        on_conflict: ConflictPolicy = ConflictPolicy.reject,
        resolver: Optional[ModulePermissionResolver] = None,
        routes: Optional[RoutesConfig] = None,
        directory: Optional[Directory] = None,
        details_executor: Optional[Executor] = None,
        event_bus: Optional[EventBus] = None,
        audit_logger: Optional[SecurityAuditLogger] = None,
        event_journal: Optional[EventLogger] = None,
        notices: Optional[NoticeCenter] = None,
        now: Optional[Callable[[], float]] = None,
        timer_factory: Optional[TimerFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or get_logger("session")
        self.identity = identity
        self.directory = directory
        self.event_bus = event_bus or EventBus(logger=get_logger("events"))
        self.audit_logger = audit_logger
        self.notices = notices or NoticeCenter()
        self.routes = routes or RoutesConfig()
        if event_journal is not None:
            self.event_bus.subscribe("*", EventJournalSubscriber(event_journal), priority=200)

        self.simulation = RoleSimulationContext(
            identity=identity,
            on_conflict=on_conflict,
            audit_logger=audit_logger,
            event_bus=self.event_bus,
        )
        self.impersonation = ImpersonationContext(identity=identity, audit_logger=audit_logger, event_bus=self.event_bus, now=now)
        self.timeout = SessionTimeoutMonitor(
            cfg=timeout_cfg or SessionTimeoutConfig(),
            identity=identity,
            now=now,
            timer_factory=timer_factory,
            audit_logger=audit_logger,
            event_bus=self.event_bus,
        )
        self.guard = RouteGuard(
            identity=identity,
            simulation=self.simulation,
            resolver=resolver,
            routes=self.routes,
            notices=self.notices,
            event_bus=self.event_bus,
            sign_in_required=lambda: self.timeout.sign_in_required,
        )
        self.details = OverlayDetailsLoader(directory, executor=details_executor)
        self.simulation_banner = RoleSimulationBanner(self.simulation, details=self.details)
        self.impersonation_banner = ImpersonationBanner(self.impersonation)

        self._lock = threading.Lock()
        self._user_id: Optional[str] = None
        self._unsubscribe = identity.subscribe(self._on_identity)
        # an identity that is already settled at construction time
        self._on_identity(identity.snapshot())

    @classmethod
    def from_config(cls, cfg: Any, *, identity: IdentityProvider, directory: Optional[Directory] = None, log_dir: str = "logs", **kwargs: Any) -> "PortalSession":
        """Build from a loaded ``PortalGateConfig``."""
        kwargs.setdefault("audit_logger", SecurityAuditLogger(path=os.path.join(log_dir, "security.jsonl")))
        kwargs.setdefault("event_journal", EventLogger(os.path.join(log_dir, "events.jsonl")))
        kwargs.setdefault("event_bus", EventBus(cfg=cfg.app.events, logger=get_logger("events")))
        kwargs.setdefault("notices", NoticeCenter(keep_last=cfg.app.notices_keep_last))
        return cls(
            identity=identity,
            timeout_cfg=cfg.session,
            on_conflict=cfg.simulation.on_conflict,
            resolver=ModulePermissionResolver.from_config(cfg.permissions),
            routes=cfg.app.routes,
            directory=directory,
            **kwargs,
        )

    @contextlib.contextmanager
    def provide(self) -> Iterator["PortalSession"]:
        """Bind this session's simulation, impersonation and timeout state to the current context."""
        with provide_role_simulation(self.simulation), provide_impersonation(self.impersonation), provide_session_timeout(self.timeout):
            yield self

    def close(self) -> None:
        self._unsubscribe()
        self.timeout.stop()
        self.guard.reset()

    # ---- identity lifecycle ----
    def _on_identity(self, snap: IdentitySnapshot) -> None:
        if snap.loading:
            return
        user_id = snap.user.id if snap.is_authenticated and snap.user else None
        with self._lock:
            previous, self._user_id = self._user_id, user_id

        if user_id is None:
            if previous is not None:
                self.logger.info("Session ended for user_id=%s; clearing overlays", previous)
            self.simulation.stop_simulation()
            self.impersonation.stop_impersonation()
            self.details.invalidate()
            self.timeout.reset()
            return

        if previous is not None and previous != user_id:
            # a different principal never inherits overlays
            self.simulation.stop_simulation()
            self.impersonation.stop_impersonation()
            self.details.invalidate()
        if previous != user_id or self.timeout.state().phase not in {SessionPhase.active, SessionPhase.warning}:
            self.timeout.start()
