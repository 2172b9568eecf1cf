from __future__ import annotations

import logging
import threading
from typing import Any, List, Mapping, Optional, Union

from portalgate.core.errors import PermissionDeniedError, SimulationConflictError
from portalgate.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from portalgate.core.identity.models import OVERLAY_ROLES, UserRole, roles_at_or_below
from portalgate.core.identity.provider import IdentityProvider
from portalgate.core.logger import get_logger
from portalgate.core.permissions.models import ModuleAccessMap, ModuleKey, freeze_module_access
from portalgate.core.security_events import SecurityAuditLogger
from portalgate.core.simulation.models import IDLE, ConflictPolicy, SimulationScoping, SimulationState
from portalgate.core.trace import resolve_trace_id


class RoleSimulationContext:
    """
    Role simulation overlay for one session.

    The whole overlay lives in a single immutable ``SimulationState``; start and stop
    swap it under a lock, so role and module map can never be observed out of step.
    """

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        on_conflict: ConflictPolicy = ConflictPolicy.reject,
        audit_logger: Optional[SecurityAuditLogger] = None,
        event_bus: Any = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.identity = identity
        self.on_conflict = ConflictPolicy(on_conflict)
        self.audit_logger = audit_logger
        self.event_bus = event_bus
        self.logger = logger or get_logger("simulation")
        self._lock = threading.Lock()
        self._state: SimulationState = IDLE

    # ---- snapshot accessors ----
    def snapshot(self) -> SimulationState:
        with self._lock:
            return self._state

    @property
    def is_simulating(self) -> bool:
        return self.snapshot().is_simulating

    @property
    def simulated_role(self) -> Optional[UserRole]:
        return self.snapshot().simulated_role

    @property
    def simulated_modules(self) -> Optional[ModuleAccessMap]:
        return self.snapshot().simulated_modules

    @property
    def simulated_client_id(self) -> Optional[str]:
        return self.snapshot().simulated_client_id

    @property
    def simulated_contact_id(self) -> Optional[str]:
        return self.snapshot().simulated_contact_id

    @property
    def actual_role(self) -> Optional[UserRole]:
        return self.identity.snapshot().role

    @property
    def can_simulate(self) -> bool:
        return self.actual_role in OVERLAY_ROLES

    @property
    def available_roles(self) -> List[UserRole]:
        # same level or lower than the real role
        return roles_at_or_below(self.actual_role)

    @property
    def effective_role(self) -> Optional[UserRole]:
        return self.snapshot().simulated_role or self.actual_role

    # ---- mutations ----
    def start_simulation(
        self,
        role: Union[UserRole, str],
        module_access: Mapping[Any, Any],
        scoping: Optional[SimulationScoping] = None,
        *,
        trace_id: Optional[str] = None,
    ) -> SimulationState:
        trace_id = resolve_trace_id(trace_id)
        role = UserRole(role)
        ident = self.identity.snapshot()
        actor_id = ident.user.id if ident.user else None
        if not self.can_simulate:
            self._audit(trace_id, "simulation.start", actor_id, "denied", {"role": role.value, "reason": "not_permitted"})
            raise PermissionDeniedError("You are not allowed to simulate roles.", role=role.value)
        if role not in self.available_roles:
            self._audit(trace_id, "simulation.start", actor_id, "denied", {"role": role.value, "reason": "above_actual_role"})
            raise PermissionDeniedError("You can only simulate your own role or a lower one.", role=role.value)

        scoping = scoping or SimulationScoping()
        new_state = SimulationState(
            simulated_role=role,
            simulated_modules=freeze_module_access(module_access),
            simulated_client_id=scoping.client_id or None,
            simulated_contact_id=scoping.contact_id or None,
        )
        with self._lock:
            current = self._state
            if current.is_simulating and current.simulated_role != role and self.on_conflict == ConflictPolicy.reject:
                conflict_role = current.simulated_role.value if current.simulated_role else None
            else:
                conflict_role = None
                self._state = new_state
        if conflict_role is not None:
            self._audit(trace_id, "simulation.start", actor_id, "rejected", {"role": role.value, "active_role": conflict_role})
            raise SimulationConflictError(active_role=conflict_role, requested_role=role.value)

        details = new_state.to_dict()
        self._audit(trace_id, "simulation.start", actor_id, "started", details)
        self._publish(trace_id, "simulation.started", details)
        self.logger.info("Simulation started: role=%s client_id=%s contact_id=%s", role.value, new_state.simulated_client_id, new_state.simulated_contact_id)
        return new_state

    def stop_simulation(self, *, trace_id: Optional[str] = None) -> bool:
        """Clear the overlay. Returns False (and does nothing) if none was active."""
        with self._lock:
            previous = self._state
            self._state = IDLE
        if not previous.is_simulating:
            return False
        trace_id = resolve_trace_id(trace_id)
        ident = self.identity.snapshot()
        details = {"role": previous.simulated_role.value if previous.simulated_role else None}
        self._audit(trace_id, "simulation.stop", ident.user.id if ident.user else None, "stopped", details)
        self._publish(trace_id, "simulation.stopped", details)
        self.logger.info("Simulation stopped: role=%s", details["role"])
        return True

    def has_module(self, key: Union[ModuleKey, str]) -> bool:
        """True when not simulating, otherwise the simulated grant for ``key``."""
        st = self.snapshot()
        if not st.is_simulating or st.simulated_modules is None:
            return True
        return bool(st.simulated_modules.get(ModuleKey(key), False))

    # ---- internals ----
    def _audit(self, trace_id: str, event: str, actor_id: Optional[str], outcome: str, details: dict) -> None:
        if self.audit_logger is None:
            return
        severity = "INFO" if outcome in {"started", "stopped"} else "WARN"
        self.audit_logger.log(trace_id=trace_id, severity=severity, event=event, actor_id=actor_id, outcome=outcome, details=details)

    def _publish(self, trace_id: str, event_type: str, payload: dict) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(
            BaseEvent(event_type=event_type, trace_id=trace_id, source_subsystem=SourceSubsystem.simulation, severity=EventSeverity.INFO, payload=payload)
        )
