from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator

ACTIVITY_SIGNALS = frozenset({"pointer", "key", "scroll", "focus", "touch", "click"})


class SessionTimeoutConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    idle_threshold_seconds: int = Field(default=900, ge=2)
    warning_window_seconds: int = Field(default=60, ge=1)
    tick_seconds: float = Field(default=1.0, gt=0.0, le=1.0)
    sign_out_retries: int = Field(default=1, ge=0, le=5)

    @model_validator(mode="after")
    def _window_inside_threshold(self) -> "SessionTimeoutConfig":
        if self.warning_window_seconds >= self.idle_threshold_seconds:
            raise ValueError("warning_window_seconds must be smaller than idle_threshold_seconds")
        return self


class SessionPhase(str, Enum):
    active = "active"
    warning = "warning"
    signed_out = "signed_out"
    sign_in_required = "sign_in_required"


@dataclass(frozen=True)
class SessionTimeoutState:
    last_activity_at: float
    warning_shown: bool
    remaining_seconds: int
    phase: SessionPhase = SessionPhase.active

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_activity_at": self.last_activity_at,
            "warning_shown": self.warning_shown,
            "remaining_seconds": self.remaining_seconds,
            "phase": self.phase.value,
        }
