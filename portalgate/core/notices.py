from __future__ import annotations

import collections
import threading
import time
from enum import Enum
from typing import Deque, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NoticeLevel(str, Enum):
    info = "info"
    success = "success"
    error = "error"


class Notice(BaseModel):
    """A transient, toast-style notification for the UI shell."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    level: NoticeLevel = NoticeLevel.info
    message: str = Field(min_length=1, max_length=300)
    path: Optional[str] = None
    code: Optional[str] = None
    created_at: float = Field(default_factory=lambda: time.time())


class NoticeCenter:
    def __init__(self, *, keep_last: int = 50):
        self._lock = threading.Lock()
        self._pending: Deque[Notice] = collections.deque(maxlen=max(1, int(keep_last)))

    def push(self, notice: Notice) -> None:
        with self._lock:
            self._pending.append(notice)

    def pending(self) -> List[Notice]:
        with self._lock:
            return list(self._pending)

    def drain(self) -> List[Notice]:
        with self._lock:
            out = list(self._pending)
            self._pending.clear()
            return out
