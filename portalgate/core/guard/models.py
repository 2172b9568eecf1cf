from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portalgate.core.permissions.models import ModuleKey

NOTICE_ADMIN_PATH = "This page is not available in simulation mode."
NOTICE_NO_MODULE = "You do not have permission to view this page."


class RoutesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sign_in_route: str = "/auth"
    default_route: str = "/dashboard"

    @field_validator("sign_in_route", "default_route")
    @classmethod
    def _absolute(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v.startswith("/"):
            raise ValueError("routes must start with '/'")
        return v


class GuardOutcome(str, Enum):
    loading = "loading"
    unauthenticated = "unauthenticated"
    sign_in_required = "sign_in_required"
    allowed = "allowed"
    blocked_admin_path = "blocked_admin_path"
    blocked_module = "blocked_module"


class GuardDecision(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    outcome: GuardOutcome
    path: str
    redirect_to: Optional[str] = None
    # replace the history entry; no back-navigation into the guarded route
    replace: bool = False
    required_module: Optional[ModuleKey] = None
    notice: Optional[str] = Field(default=None, description="Set only on the render that emitted the notice.")

    @property
    def renders_children(self) -> bool:
        return self.outcome == GuardOutcome.allowed

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None
