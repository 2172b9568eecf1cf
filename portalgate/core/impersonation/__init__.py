from portalgate.core.impersonation.manager import ImpersonationContext
from portalgate.core.impersonation.models import ImpersonatedUser, ImpersonationState

__all__ = ["ImpersonationContext", "ImpersonatedUser", "ImpersonationState"]
