from __future__ import annotations

import logging
import math
import threading
import time
from typing import Any, Callable, Optional

from portalgate.core.errors import SignOutFailedError, ValidationError
from portalgate.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from portalgate.core.identity.provider import IdentityProvider
from portalgate.core.logger import get_logger
from portalgate.core.security_events import SecurityAuditLogger
from portalgate.core.session_timeout.models import ACTIVITY_SIGNALS, SessionPhase, SessionTimeoutConfig, SessionTimeoutState
from portalgate.core.session_timeout.timer import RecurringTimer
from portalgate.core.trace import new_trace_id

TimerFactory = Callable[[float, Callable[[], None]], Any]


class SessionTimeoutMonitor:
    """
    Idle timeout with a warning window.

    Idle time is always derived from the wall clock and ``last_activity_at``; tick
    count is never trusted, so a throttled or late timer cannot stretch a session.
    Once the warning is showing only ``extend_session`` dismisses it.
    """

    def __init__(
        self,
        *,
        cfg: SessionTimeoutConfig,
        identity: IdentityProvider,
        now: Optional[Callable[[], float]] = None,
        timer_factory: Optional[TimerFactory] = None,
        audit_logger: Optional[SecurityAuditLogger] = None,
        event_bus: Any = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.cfg = cfg
        self.identity = identity
        self.audit_logger = audit_logger
        self.event_bus = event_bus
        self.logger = logger or get_logger("session")
        self._now = now or time.time
        self._timer_factory = timer_factory or (lambda interval, fn: RecurringTimer(interval, fn, logger=self.logger))
        self._lock = threading.RLock()
        self._timer: Any = None
        self._expiring = False
        self.last_error: Optional[SignOutFailedError] = None
        self._state = SessionTimeoutState(last_activity_at=self._now(), warning_shown=False, remaining_seconds=cfg.idle_threshold_seconds, phase=SessionPhase.signed_out)

    # ---- lifecycle ----
    def start(self) -> SessionTimeoutState:
        """Mount for a signed-in session. Calling it again never adds a second timer."""
        with self._lock:
            self._state = self._fresh_state()
            self._expiring = False
            self.last_error = None
            if self._timer is None:
                self._schedule()
            return self._state

    def stop(self) -> None:
        """Unmount: cancel the timer, keep the last state for inspection."""
        with self._lock:
            self._cancel_timer()

    def reset(self) -> None:
        """Sign-out: cancel the timer and clear the countdown."""
        with self._lock:
            self._cancel_timer()
            if self._state.phase != SessionPhase.sign_in_required:
                self._state = SessionTimeoutState(last_activity_at=self._now(), warning_shown=False, remaining_seconds=0, phase=SessionPhase.signed_out)

    @property
    def timer_active(self) -> bool:
        with self._lock:
            return self._timer is not None

    # ---- reads ----
    def state(self) -> SessionTimeoutState:
        with self._lock:
            return self._state

    @property
    def warning_shown(self) -> bool:
        return self.state().warning_shown

    @property
    def remaining_seconds(self) -> int:
        return self.state().remaining_seconds

    @property
    def sign_in_required(self) -> bool:
        """Sign-out on expiry failed; nothing may render until the user signs in again."""
        return self.state().phase == SessionPhase.sign_in_required

    # ---- inputs ----
    def record_activity(self, signal: str = "pointer") -> bool:
        """
        Register a user-activity signal. Returns True when the idle clock was reset.

        Ignored while the warning dialog is open (it is modal) and after sign-out.
        """
        if signal not in ACTIVITY_SIGNALS:
            raise ValidationError("Unknown activity signal.", signal=str(signal)[:32])
        with self._lock:
            if self._state.phase != SessionPhase.active:
                return False
            self._state = self._fresh_state()
            return True

    def extend_session(self) -> SessionTimeoutState:
        """Accept the warning: restart the full idle period with a fresh timer."""
        with self._lock:
            if self._state.phase not in {SessionPhase.active, SessionPhase.warning}:
                return self._state
            was_warning = self._state.warning_shown
            self._cancel_timer()
            self._state = self._fresh_state()
            self._schedule()
            st = self._state
        if was_warning:
            self._publish("session.extended", EventSeverity.INFO, {"idle_threshold_seconds": self.cfg.idle_threshold_seconds})
            self.logger.info("Session extended")
        return st

    def on_visibility_change(self, visible: bool) -> SessionTimeoutState:
        """Foregrounding re-evaluates immediately from the wall clock."""
        if visible:
            return self.tick()
        return self.state()

    def tick(self) -> SessionTimeoutState:
        with self._lock:
            st = self._state
            if st.phase not in {SessionPhase.active, SessionPhase.warning} or self._expiring:
                return st
            elapsed = max(0.0, self._now() - st.last_activity_at)
            threshold = self.cfg.idle_threshold_seconds
            if elapsed < threshold - self.cfg.warning_window_seconds:
                return st
            remaining = max(0, int(math.ceil(threshold - elapsed)))
            first_warning = not st.warning_shown
            self._state = SessionTimeoutState(last_activity_at=st.last_activity_at, warning_shown=True, remaining_seconds=remaining, phase=SessionPhase.warning)
            expire = remaining <= 0
            if expire:
                self._expiring = True
            st = self._state
        if first_warning:
            self._publish("session.warning", EventSeverity.WARN, {"remaining_seconds": remaining})
            self.logger.info("Session idle warning: %ss remaining", remaining)
        if expire:
            return self._expire()
        return st

    # ---- internals ----
    def _fresh_state(self) -> SessionTimeoutState:
        return SessionTimeoutState(last_activity_at=self._now(), warning_shown=False, remaining_seconds=self.cfg.idle_threshold_seconds, phase=SessionPhase.active)

    def _schedule(self) -> None:
        self._timer = self._timer_factory(self.cfg.tick_seconds, self.tick)
        self._timer.start()

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _expire(self) -> SessionTimeoutState:
        trace_id = new_trace_id()
        ident = self.identity.snapshot()
        user_id = ident.user.id if ident.user else None
        with self._lock:
            self._cancel_timer()
        attempts = 1 + int(self.cfg.sign_out_retries)
        last_exc: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                self.identity.sign_out()
                last_exc = None
                break
            except Exception as e:  # noqa: BLE001
                last_exc = e
                self.logger.warning("Sign-out on idle expiry failed (attempt %s/%s): %s", attempt, attempts, e)

        if last_exc is None:
            with self._lock:
                self._state = SessionTimeoutState(last_activity_at=self._state.last_activity_at, warning_shown=False, remaining_seconds=0, phase=SessionPhase.signed_out)
                self._expiring = False
                st = self._state
            self._audit(trace_id, user_id, "signed_out", {"reason": "idle_timeout"})
            self._publish("session.expired", EventSeverity.WARN, {"reason": "idle_timeout"}, trace_id=trace_id)
            self.logger.info("Session expired after %ss idle; signed out", self.cfg.idle_threshold_seconds)
            return st

        err = SignOutFailedError(attempts=attempts, error=str(last_exc)[:300])
        with self._lock:
            self.last_error = err
            self._state = SessionTimeoutState(last_activity_at=self._state.last_activity_at, warning_shown=False, remaining_seconds=0, phase=SessionPhase.sign_in_required)
            self._expiring = False
            st = self._state
        self._audit(trace_id, user_id, "sign_out_failed", {"reason": "idle_timeout", "attempts": attempts})
        self._publish("session.sign_in_required", EventSeverity.ERROR, {"attempts": attempts}, trace_id=trace_id)
        self.logger.error("Sign-out failed after %s attempts; session blocked until sign-in", attempts)
        return st

    def _audit(self, trace_id: str, user_id: Optional[str], outcome: str, details: dict) -> None:
        if self.audit_logger is None:
            return
        severity = "INFO" if outcome == "signed_out" else "ERROR"
        self.audit_logger.log(trace_id=trace_id, severity=severity, event="session.idle_timeout", actor_id=user_id, outcome=outcome, details=details)

    def _publish(self, event_type: str, severity: EventSeverity, payload: dict, *, trace_id: Optional[str] = None) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(
            BaseEvent(event_type=event_type, trace_id=trace_id, source_subsystem=SourceSubsystem.session, severity=severity, payload=payload)
        )
