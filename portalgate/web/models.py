from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from portalgate.core.identity.models import UserRole
from portalgate.core.impersonation.models import ImpersonatedUser
from portalgate.core.notices import Notice
from portalgate.core.permissions.models import ModuleKey
from portalgate.core.ux.banners import ImpersonationBannerModel, RoleSimulationBannerModel


class SimulationStartRequest(BaseModel):
    role: UserRole
    module_access: Dict[ModuleKey, bool] = Field(default_factory=dict)
    client_id: Optional[str] = Field(default=None, max_length=128)
    contact_id: Optional[str] = Field(default=None, max_length=128)


class ImpersonationStartRequest(BaseModel):
    # either a directory lookup by id or a fully described target
    user_id: Optional[str] = Field(default=None, min_length=1, max_length=128)
    user: Optional[ImpersonatedUser] = None
    reason: str = Field(default="Admin impersonation", min_length=1, max_length=300)

    @model_validator(mode="after")
    def _one_target(self) -> "ImpersonationStartRequest":
        if (self.user_id is None) == (self.user is None):
            raise ValueError("exactly one of user_id or user is required")
        return self


class ActivityRequest(BaseModel):
    signal: str = Field(default="pointer", min_length=1, max_length=32)


class ActivityResponse(BaseModel):
    reset: bool
    phase: str


class StopResponse(BaseModel):
    stopped: bool


class BannersResponse(BaseModel):
    impersonation: ImpersonationBannerModel
    simulation: RoleSimulationBannerModel


class NoticesResponse(BaseModel):
    notices: List[Notice]


class StateResponse(BaseModel):
    trace_id: str
    state: Dict[str, Any]


class PageView(BaseModel):
    path: str
    required_module: Optional[ModuleKey] = None
    effective_role: Optional[UserRole] = None
    acting_user_id: Optional[str] = None


class SignInView(BaseModel):
    """The sign-in route. Never guarded, so an unauthenticated redirect always lands."""

    path: str
    loading: bool
    signed_in: bool
    sign_in_required: bool
    continue_to: Optional[str] = None
