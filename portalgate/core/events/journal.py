from __future__ import annotations

import json
import os
import threading
import time
from typing import Any, Dict, Optional

# Any key containing one of these is masked (e.g. "id_token", "X-Api-Key").
SENSITIVE_KEY_MARKERS = ("password", "secret", "token", "api_key", "api-key", "authorization", "cookie", "session_id")
MASK = "***REDACTED***"


def is_sensitive_key(key: Any) -> bool:
    k = str(key).lower()
    return any(marker in k for marker in SENSITIVE_KEY_MARKERS)


def redact(obj: Any) -> Any:
    """Deep copy of ``obj`` with credential-like values masked."""
    if isinstance(obj, dict):
        return {k: (MASK if is_sensitive_key(k) else redact(v)) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [redact(x) for x in obj]
    return obj


class EventLogger:
    """Append-only JSONL journal; one object per line, details redacted."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"EventLogger(path={self.path!r})"

    def log(self, trace_id: Optional[str], event_type: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.append(
            {
                "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
                "trace_id": trace_id,
                "event": event_type,
                "details": redact(details or {}),
            }
        )

    def append(self, row: Dict[str, Any]) -> None:
        line = json.dumps(row, ensure_ascii=False, default=str)
        with self._lock:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
