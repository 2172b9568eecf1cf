from __future__ import annotations

import json
import re
import time
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portalgate.core.events.journal import redact

# "session.warning", "simulation.started", "error.raised"
_EVENT_TYPE_RE = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


class EventSeverity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SourceSubsystem(str, Enum):
    identity = "identity"
    guard = "guard"
    simulation = "simulation"
    impersonation = "impersonation"
    session = "session"
    banners = "banners"
    web = "web"
    events = "events"


class BaseEvent(BaseModel):
    """Immutable lifecycle event. Payloads are redacted and must survive ``json.dumps``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    event_type: str
    timestamp: float = Field(default_factory=time.time)
    trace_id: Optional[str] = None
    source_subsystem: SourceSubsystem
    severity: EventSeverity = EventSeverity.INFO
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("event_type")
    @classmethod
    def _dotted_name(cls, v: str) -> str:
        v = str(v or "").strip().lower()
        if not _EVENT_TYPE_RE.match(v):
            raise ValueError("event_type must be a dotted lowercase name")
        return v

    @field_validator("payload")
    @classmethod
    def _safe_payload(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        safe = redact(v)
        try:
            json.dumps(safe, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ValueError("payload must be JSON-serializable") from e
        return safe

    def matches(self, pattern: str) -> bool:
        """``*`` matches everything, ``session.*`` a whole topic, anything else exactly."""
        if pattern == "*":
            return True
        if pattern.endswith(".*"):
            return self.event_type.startswith(pattern[:-1])
        return pattern == self.event_type
