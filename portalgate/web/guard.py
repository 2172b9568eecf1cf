from __future__ import annotations

from typing import Optional, Union

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from portalgate.core.guard.models import GuardDecision, GuardOutcome
from portalgate.core.permissions.models import ModuleKey
from portalgate.core.session import PortalSession


class GuardInterrupt(Exception):
    """Raised by ``require_view`` when the guard does not render children. Not an error."""

    def __init__(self, decision: GuardDecision):
        super().__init__(decision.outcome.value)
        self.decision = decision


def require_view(session: PortalSession, module_key: Optional[Union[ModuleKey, str]] = None):
    """
    FastAPI dependency factory: evaluates the route guard for the request path.

    Returns the ``GuardDecision`` when children may render, raises ``GuardInterrupt`` otherwise.
    """
    key = ModuleKey(module_key) if module_key is not None else None

    async def _dependency(request: Request) -> GuardDecision:
        decision = session.guard.evaluate(request.url.path, key)
        if not decision.renders_children:
            raise GuardInterrupt(decision)
        return decision

    return _dependency


def guard_response(decision: GuardDecision) -> Response:
    if decision.outcome == GuardOutcome.loading:
        return JSONResponse(status_code=202, content={"status": "loading", "path": decision.path})
    if decision.redirect_to is not None:
        resp = RedirectResponse(url=decision.redirect_to, status_code=303)
        if decision.notice:
            resp.headers["X-Guard-Notice"] = decision.notice
        return resp
    # blocked on the default route itself: nowhere to redirect to
    return JSONResponse(status_code=403, content={"detail": decision.notice or "Not available.", "code": decision.outcome.value})
