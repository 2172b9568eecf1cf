from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portalgate.core.errors import NotFoundError, PortalGateError
from portalgate.core.events import EventLogger
from portalgate.core.guard.models import GuardDecision
from portalgate.core.logger import get_logger
from portalgate.core.session import PortalSession
from portalgate.core.simulation.models import SimulationScoping
from portalgate.core.ux.dialogs import SessionTimeoutDialogModel, session_timeout_dialog
from portalgate.web.guard import GuardInterrupt, guard_response, require_view
from portalgate.web.middleware import RequestTraceMiddleware
from portalgate.web.models import (
    ActivityRequest,
    ActivityResponse,
    BannersResponse,
    ImpersonationStartRequest,
    NoticesResponse,
    PageView,
    SignInView,
    SimulationStartRequest,
    StateResponse,
    StopResponse,
)

_STATUS_BY_CODE: Dict[str, int] = {
    "permission_denied": 403,
    "not_found": 404,
    "simulation_conflict": 409,
    "validation_error": 400,
}


def _trace_id(request: Request) -> str:
    return getattr(getattr(request, "state", None), "trace_id", "web")


def create_app(
    session: PortalSession,
    *,
    event_logger: Optional[EventLogger] = None,
    logger: Optional[logging.Logger] = None,
    enable_pages: bool = True,
) -> FastAPI:
    app = FastAPI(title="PortalGate", version="0.1.0")
    log = logger or get_logger("web")
    app.state.session = session
    app.state.require_view = lambda module_key=None: require_view(session, module_key)

    app.middleware("http")(RequestTraceMiddleware(event_logger=event_logger))

    @app.exception_handler(PortalGateError)
    async def portalgate_error_handler(request: Request, exc: PortalGateError):
        code = _STATUS_BY_CODE.get(exc.code, 500)
        if code >= 500:
            log.error("Request failed (%s %s): %s", request.method, request.url.path, exc.to_dict())
        else:
            log.info("Request rejected (%s %s): code=%s", request.method, request.url.path, exc.code)
        return JSONResponse(status_code=code, content={"detail": exc.user_message, "code": exc.code})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        log.info("Invalid request (%s %s): %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"detail": "Invalid request.", "code": "validation_error"})

    @app.exception_handler(GuardInterrupt)
    async def guard_interrupt_handler(request: Request, exc: GuardInterrupt):
        return guard_response(exc.decision)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/v1/status")
    async def status(request: Request):
        ident = session.identity.snapshot()
        return {
            "trace_id": _trace_id(request),
            "identity": {
                "loading": ident.loading,
                "user_id": ident.user.id if ident.user else None,
                "role": ident.role.value if ident.role else None,
            },
            "simulation": session.simulation.snapshot().to_dict(),
            "impersonation": session.impersonation.snapshot().to_dict(),
            "session": session.timeout.state().to_dict(),
            "events": session.event_bus.get_stats(),
        }

    # ---- UI shell ----
    @app.get("/v1/banners", response_model=BannersResponse)
    async def banners():
        return BannersResponse(
            impersonation=session.impersonation_banner.present(),
            simulation=session.simulation_banner.present(),
        )

    @app.get("/v1/notices", response_model=NoticesResponse)
    async def notices():
        return NoticesResponse(notices=session.notices.drain())

    @app.get("/v1/session/dialog", response_model=SessionTimeoutDialogModel)
    async def session_dialog():
        return session_timeout_dialog(session.timeout)

    @app.post("/v1/session/extend", response_model=StateResponse)
    async def session_extend(request: Request):
        st = session.timeout.extend_session()
        return StateResponse(trace_id=_trace_id(request), state=st.to_dict())

    @app.post("/v1/session/activity", response_model=ActivityResponse)
    async def session_activity(req: ActivityRequest):
        reset = session.timeout.record_activity(req.signal)
        return ActivityResponse(reset=reset, phase=session.timeout.state().phase.value)

    @app.post("/v1/auth/sign_out", response_model=StopResponse)
    async def sign_out():
        was_signed_in = session.identity.snapshot().is_authenticated
        session.identity.sign_out()
        return StopResponse(stopped=was_signed_in)

    # ---- overlays ----
    @app.post("/v1/simulation/start", response_model=StateResponse)
    async def simulation_start(req: SimulationStartRequest, request: Request):
        st = session.simulation.start_simulation(
            req.role,
            req.module_access,
            SimulationScoping(client_id=req.client_id, contact_id=req.contact_id),
            trace_id=_trace_id(request),
        )
        return StateResponse(trace_id=_trace_id(request), state=st.to_dict())

    @app.post("/v1/simulation/stop", response_model=StopResponse)
    async def simulation_stop(request: Request):
        return StopResponse(stopped=session.simulation_banner.stop())

    @app.post("/v1/impersonation/start", response_model=StateResponse)
    async def impersonation_start(req: ImpersonationStartRequest, request: Request):
        trace_id = _trace_id(request)
        if req.user is not None:
            st = session.impersonation.start_impersonation(req.user, reason=req.reason, trace_id=trace_id)
        else:
            if session.directory is None:
                raise NotFoundError("User directory is not configured.", target_user_id=req.user_id)
            st = session.impersonation.start_impersonation_by_id(str(req.user_id), session.directory, reason=req.reason, trace_id=trace_id)
        return StateResponse(trace_id=trace_id, state=st.to_dict())

    @app.post("/v1/impersonation/stop", response_model=StopResponse)
    async def impersonation_stop():
        return StopResponse(stopped=session.impersonation_banner.stop())

    # ---- guarded route tree ----
    if enable_pages:
        guarded = require_view(session)

        async def page_decision(request: Request) -> GuardDecision:
            # unknown API paths are plain 404s; never evaluated by the guard
            path = request.url.path
            if path == "/v1" or path.startswith("/v1/"):
                raise HTTPException(status_code=404, detail="Not found")
            return await guarded(request)

        @app.get(session.routes.sign_in_route, response_model=SignInView)
        async def sign_in_page():
            ident = session.identity.snapshot()
            blocked = session.timeout.sign_in_required
            signed_in = ident.is_authenticated and not blocked
            return SignInView(
                path=session.routes.sign_in_route,
                loading=ident.loading,
                signed_in=signed_in,
                sign_in_required=blocked,
                continue_to=session.routes.default_route if signed_in else None,
            )

        @app.get("/{page_path:path}", response_model=PageView)
        async def page(page_path: str, decision: GuardDecision = Depends(page_decision)):
            return PageView(
                path=decision.path,
                required_module=decision.required_module,
                effective_role=session.simulation.effective_role,
                acting_user_id=session.impersonation.acting_user_id(),
            )

    return app

