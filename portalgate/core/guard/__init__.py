from portalgate.core.guard.models import GuardDecision, GuardOutcome, RoutesConfig
from portalgate.core.guard.route_guard import RouteGuard

__all__ = ["GuardDecision", "GuardOutcome", "RoutesConfig", "RouteGuard"]
