from __future__ import annotations

import os
import time
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from portalgate.core.events import EventLogger, redact

AuditSeverity = Literal["INFO", "WARN", "ERROR"]


class AuditRecord(BaseModel):
    """One line of ``security.jsonl``: who started/stopped an overlay, or was signed out."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ts: str = Field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))
    trace_id: str
    severity: AuditSeverity = "INFO"
    event: str
    actor_id: Optional[str] = None
    outcome: str
    details: Dict[str, Any] = Field(default_factory=dict)


class SecurityAuditLogger(EventLogger):
    def __init__(self, path: str = os.path.join("logs", "security.jsonl")):
        super().__init__(path)

    def log(  # type: ignore[override]
        self,
        *,
        trace_id: str,
        severity: AuditSeverity,
        event: str,
        actor_id: Optional[str],
        outcome: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        record = AuditRecord(
            trace_id=trace_id,
            severity=severity,
            event=event,
            actor_id=actor_id,
            outcome=outcome,
            details=redact(details or {}),
        )
        self.append(record.model_dump())
        return record
