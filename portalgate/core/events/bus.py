from __future__ import annotations

import collections
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from portalgate.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from portalgate.core.logger import get_logger


class EventBusConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    keep_recent: int = Field(default=200, ge=10, le=10_000)


@dataclass
class _Sub:
    event_type: str
    handler: Callable[[BaseEvent], None]
    priority: int


class EventBus:
    """
    In-process event bus.

    - delivery is synchronous, in subscriber priority order, on the publisher's thread
    - handler failures are isolated (caught) and re-emitted as ``error.raised``
    - a bounded tail of recent events is kept for status endpoints
    """

    def __init__(self, *, cfg: Optional[EventBusConfig] = None, logger: Optional[logging.Logger] = None):
        self.cfg = cfg or EventBusConfig()
        self.logger = logger or get_logger("events")
        self._lock = threading.RLock()
        self._subs: List[_Sub] = []
        self._recent: Deque[Dict[str, Any]] = collections.deque(maxlen=int(self.cfg.keep_recent))
        self._published_total = 0
        self._handler_errors_total = 0

    def subscribe(self, event_type: str, handler: Callable[[BaseEvent], None], priority: int = 50) -> None:
        """
        event_type supports:
        - exact match ("session.warning")
        - prefix match ("session.*")
        - wildcard all ("*")
        """
        if not callable(handler):
            raise ValueError("handler must be callable")
        with self._lock:
            self._subs.append(_Sub(event_type=str(event_type), handler=handler, priority=int(priority)))
            self._subs.sort(key=lambda s: s.priority)

    def unsubscribe(self, handler: Callable[[BaseEvent], None]) -> int:
        with self._lock:
            before = len(self._subs)
            self._subs = [s for s in self._subs if s.handler is not handler]
            return before - len(self._subs)

    def publish(self, ev: BaseEvent) -> bool:
        if not self.cfg.enabled:
            return False
        with self._lock:
            self._published_total += 1
            self._recent.appendleft(ev.model_dump())
            subs = [s for s in self._subs if ev.matches(s.event_type)]
        for s in subs:
            self._safe_handle(s.handler, ev)
        return True

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "enabled": bool(self.cfg.enabled),
                "published_total": self._published_total,
                "handler_errors_total": self._handler_errors_total,
                "subscribers": len(self._subs),
            }

    def dump_recent(self, n: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._recent)[: max(1, int(n))]

    def _safe_handle(self, handler: Callable[[BaseEvent], None], ev: BaseEvent) -> None:
        try:
            handler(ev)
        except Exception as e:  # noqa: BLE001
            with self._lock:
                self._handler_errors_total += 1
            self.logger.warning("Event handler %s failed for %s: %s", getattr(handler, "__name__", "handler"), ev.event_type, e)
            # avoid recursion storms
            if ev.event_type == "error.raised":
                return
            self.publish(
                BaseEvent(
                    event_type="error.raised",
                    trace_id=ev.trace_id,
                    source_subsystem=SourceSubsystem.events,
                    severity=EventSeverity.ERROR,
                    payload={"handler": getattr(handler, "__name__", "handler"), "event_type": ev.event_type, "error": str(e)[:500]},
                )
            )
