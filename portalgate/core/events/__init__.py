"""
Core internal event bus + JSONL event logger.
"""

from portalgate.core.events.journal import EventLogger, redact
from portalgate.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from portalgate.core.events.bus import EventBus, EventBusConfig

__all__ = [
    "EventLogger",
    "redact",
    "BaseEvent",
    "EventSeverity",
    "SourceSubsystem",
    "EventBus",
    "EventBusConfig",
]
