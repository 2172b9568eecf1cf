from __future__ import annotations

"""
Provider scopes for per-session state.

Each piece of overlay/timeout state is bound to the current execution context
with ``provide(...)``. Reading it outside of a ``provide`` block is a wiring
mistake and raises ``ContextMisuseError`` instead of returning a default.
"""

import contextlib
import contextvars
from typing import TYPE_CHECKING, Any, Iterator, Optional

from portalgate.core.errors import ContextMisuseError

if TYPE_CHECKING:
    from portalgate.core.impersonation.manager import ImpersonationContext
    from portalgate.core.session_timeout.monitor import SessionTimeoutMonitor
    from portalgate.core.simulation.manager import RoleSimulationContext

_SIMULATION: contextvars.ContextVar[Optional["RoleSimulationContext"]] = contextvars.ContextVar("portalgate.simulation", default=None)
_IMPERSONATION: contextvars.ContextVar[Optional["ImpersonationContext"]] = contextvars.ContextVar("portalgate.impersonation", default=None)
_SESSION_TIMEOUT: contextvars.ContextVar[Optional["SessionTimeoutMonitor"]] = contextvars.ContextVar("portalgate.session_timeout", default=None)


@contextlib.contextmanager
def _provide(var: contextvars.ContextVar, value: Any) -> Iterator[Any]:
    token = var.set(value)
    try:
        yield value
    finally:
        var.reset(token)


def _use(var: contextvars.ContextVar, hook: str, provider: str) -> Any:
    value = var.get()
    if value is None:
        raise ContextMisuseError(f"{hook} must be used within {provider}.", hook=hook, provider=provider)
    return value


def provide_role_simulation(ctx: "RoleSimulationContext"):
    return _provide(_SIMULATION, ctx)


def provide_impersonation(ctx: "ImpersonationContext"):
    return _provide(_IMPERSONATION, ctx)


def provide_session_timeout(monitor: "SessionTimeoutMonitor"):
    return _provide(_SESSION_TIMEOUT, monitor)


def use_role_simulation() -> "RoleSimulationContext":
    return _use(_SIMULATION, "use_role_simulation", "provide_role_simulation")


def use_impersonation() -> "ImpersonationContext":
    return _use(_IMPERSONATION, "use_impersonation", "provide_impersonation")


def use_session_timeout() -> "SessionTimeoutMonitor":
    return _use(_SESSION_TIMEOUT, "use_session_timeout", "provide_session_timeout")
