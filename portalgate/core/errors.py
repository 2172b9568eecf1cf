from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from portalgate.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class PortalGateError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Core types ----
class ConfigError(PortalGateError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ContextMisuseError(PortalGateError):
    """
    Raised when overlay/timeout state is read outside of its provider scope.

    This is a wiring mistake, never a runtime condition, so it is not recoverable.
    """

    def __init__(self, user_message: str = "State accessed outside of its provider.", **ctx: Any):
        super().__init__("context_misuse", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class PermissionDeniedError(PortalGateError):
    def __init__(self, user_message: str = "Permission denied.", **ctx: Any):
        super().__init__("permission_denied", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class SimulationConflictError(PortalGateError):
    def __init__(self, user_message: str = "A simulation is already active. Stop it first.", **ctx: Any):
        super().__init__("simulation_conflict", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class NotFoundError(PortalGateError):
    def __init__(self, user_message: str = "Not found.", **ctx: Any):
        super().__init__("not_found", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class ValidationError(PortalGateError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class SignOutFailedError(PortalGateError):
    def __init__(self, user_message: str = "Your session expired. Please sign in again.", **ctx: Any):
        super().__init__("sign_out_failed", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class LookupUnavailableError(PortalGateError):
    def __init__(self, user_message: str = "Directory lookup unavailable.", **ctx: Any):
        super().__init__("lookup_unavailable", user_message, severity=Severity.INFO, recoverable=True, context=ctx)
