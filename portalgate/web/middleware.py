from __future__ import annotations

import time
from typing import Optional

from fastapi import Request

from portalgate.core.events import EventLogger
from portalgate.core.trace import trace_id_from_header, trace_scope


class RequestTraceMiddleware:
    """Assigns ``request.state.trace_id`` and journals one line per request."""

    def __init__(self, *, event_logger: Optional[EventLogger] = None):
        self.event_logger = event_logger

    async def __call__(self, request: Request, call_next):  # noqa: ANN001
        trace_id = trace_id_from_header(request.headers.get("X-Trace-Id"))
        request.state.trace_id = trace_id
        t0 = time.time()
        with trace_scope(trace_id):
            response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        if self.event_logger is not None:
            self.event_logger.log(
                trace_id,
                "web.request",
                {
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": int((time.time() - t0) * 1000),
                },
            )
        return response
