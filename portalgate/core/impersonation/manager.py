from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from portalgate.core.directory.base import Directory
from portalgate.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from portalgate.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from portalgate.core.identity.models import OVERLAY_ROLES
from portalgate.core.identity.provider import IdentityProvider
from portalgate.core.impersonation.models import IDLE, ImpersonatedUser, ImpersonationState
from portalgate.core.logger import get_logger
from portalgate.core.security_events import SecurityAuditLogger
from portalgate.core.trace import resolve_trace_id


class ImpersonationContext:
    """
    Substitutes the displayed/acting identity for data scoping.

    Carries no capability narrowing: the route guard never reads it.
    """

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        audit_logger: Optional[SecurityAuditLogger] = None,
        event_bus: Any = None,
        logger: Optional[logging.Logger] = None,
        now: Optional[Callable[[], float]] = None,
    ) -> None:
        self.identity = identity
        self.audit_logger = audit_logger
        self.event_bus = event_bus
        self.logger = logger or get_logger("impersonation")
        self._now = now or time.time
        self._lock = threading.Lock()
        self._state: ImpersonationState = IDLE

    def snapshot(self) -> ImpersonationState:
        with self._lock:
            return self._state

    @property
    def is_impersonating(self) -> bool:
        return self.snapshot().is_impersonating

    @property
    def impersonated_user(self) -> Optional[ImpersonatedUser]:
        return self.snapshot().impersonated_user

    @property
    def can_impersonate(self) -> bool:
        ident = self.identity.snapshot()
        return ident.user is not None and ident.role in OVERLAY_ROLES

    def acting_user_id(self) -> Optional[str]:
        """Id data-fetching collaborators should scope queries to."""
        st = self.snapshot()
        if st.impersonated_user is not None:
            return st.impersonated_user.id
        ident = self.identity.snapshot()
        return ident.user.id if ident.user else None

    def start_impersonation(self, target: ImpersonatedUser, *, reason: str = "Admin impersonation", trace_id: Optional[str] = None) -> ImpersonationState:
        trace_id = resolve_trace_id(trace_id)
        ident = self.identity.snapshot()
        admin_id = ident.user.id if ident.user else None
        if not self.can_impersonate:
            self._audit(trace_id, "impersonation.start", admin_id, "denied", {"target_user_id": target.id})
            raise PermissionDeniedError("You are not allowed to impersonate another user.", target_user_id=target.id)
        if admin_id == target.id:
            raise ValidationError("You cannot impersonate yourself.", target_user_id=target.id)

        new_state = ImpersonationState(impersonated_user=target, started_at=self._now())
        with self._lock:
            previous = self._state
            self._state = new_state

        if previous.impersonated_user is not None and previous.impersonated_user.id != target.id:
            # switching targets closes the previous log entry
            self._audit(trace_id, "impersonation.stop", admin_id, "stopped", self._stop_details(previous, reason="switched"))
        self._audit(trace_id, "impersonation.start", admin_id, "started", {"target_user_id": target.id, "client_id": target.client_id, "reason": reason})
        self._publish(trace_id, "impersonation.started", {"target_user_id": target.id, "client_id": target.client_id})
        self.logger.info("Impersonation started: admin=%s target=%s", admin_id, target.id)
        return new_state

    def start_impersonation_by_id(self, user_id: str, directory: Directory, *, reason: str = "Admin impersonation", trace_id: Optional[str] = None) -> ImpersonationState:
        if not self.can_impersonate:
            raise PermissionDeniedError("You are not allowed to impersonate another user.", target_user_id=user_id)
        rec = directory.user(user_id)
        if rec is None:
            raise NotFoundError("User not found.", target_user_id=user_id)
        target = ImpersonatedUser(
            id=rec.id,
            name=rec.name or rec.email or rec.id,
            email=rec.email or None,
            role=rec.role,
            client_id=rec.client_id,
            client_name=rec.client_name,
        )
        return self.start_impersonation(target, reason=reason, trace_id=trace_id)

    def stop_impersonation(self, *, trace_id: Optional[str] = None) -> bool:
        with self._lock:
            previous = self._state
            self._state = IDLE
        if not previous.is_impersonating:
            return False
        trace_id = resolve_trace_id(trace_id)
        ident = self.identity.snapshot()
        details = self._stop_details(previous, reason="stopped")
        self._audit(trace_id, "impersonation.stop", ident.user.id if ident.user else None, "stopped", details)
        self._publish(trace_id, "impersonation.stopped", {"target_user_id": details["target_user_id"]})
        self.logger.info("Impersonation stopped: target=%s", details["target_user_id"])
        return True

    # ---- internals ----
    def _stop_details(self, previous: ImpersonationState, *, reason: str) -> dict:
        user = previous.impersonated_user
        return {
            "target_user_id": user.id if user else None,
            "started_at": previous.started_at,
            "ended_at": self._now(),
            "reason": reason,
        }

    def _audit(self, trace_id: str, event: str, actor_id: Optional[str], outcome: str, details: dict) -> None:
        if self.audit_logger is None:
            return
        severity = "WARN" if outcome == "denied" else "INFO"
        self.audit_logger.log(trace_id=trace_id, severity=severity, event=event, actor_id=actor_id, outcome=outcome, details=details)

    def _publish(self, trace_id: str, event_type: str, payload: dict) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(
            BaseEvent(event_type=event_type, trace_id=trace_id, source_subsystem=SourceSubsystem.impersonation, severity=EventSeverity.INFO, payload=payload)
        )
