from portalgate.core.session_timeout.models import ACTIVITY_SIGNALS, SessionPhase, SessionTimeoutConfig, SessionTimeoutState
from portalgate.core.session_timeout.monitor import SessionTimeoutMonitor
from portalgate.core.session_timeout.timer import RecurringTimer

__all__ = [
    "ACTIVITY_SIGNALS",
    "SessionPhase",
    "SessionTimeoutConfig",
    "SessionTimeoutState",
    "SessionTimeoutMonitor",
    "RecurringTimer",
]
