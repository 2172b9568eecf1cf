from __future__ import annotations

import contextlib
import contextvars
import re
import uuid
from typing import Iterator, Optional

# Correlates one navigation or overlay operation across logs, audit lines and events.
_ACTIVE: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("portalgate.trace_id", default=None)

_HEADER_ID_RE = re.compile(r"^[A-Za-z0-9_.:-]{1,64}$")


def new_trace_id() -> str:
    return uuid.uuid4().hex


def active_trace_id() -> Optional[str]:
    return _ACTIVE.get() or None


def resolve_trace_id(trace_id: Optional[str] = None) -> str:
    """Explicit id, else the one bound to this request/task, else a fresh one."""
    return str(trace_id) if trace_id else (active_trace_id() or new_trace_id())


def trace_id_from_header(value: Optional[str]) -> str:
    """Accept a caller-supplied id only if it is short and log-safe."""
    candidate = (value or "").strip()
    if candidate and _HEADER_ID_RE.match(candidate):
        return candidate
    return new_trace_id()


@contextlib.contextmanager
def trace_scope(trace_id: str) -> Iterator[str]:
    token = _ACTIVE.set(trace_id)
    try:
        yield trace_id
    finally:
        _ACTIVE.reset(token)
