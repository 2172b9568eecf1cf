from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ImpersonatedUser(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    email: Optional[str] = None
    role: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None


@dataclass(frozen=True)
class ImpersonationState:
    impersonated_user: Optional[ImpersonatedUser] = None
    started_at: Optional[float] = None

    @property
    def is_impersonating(self) -> bool:
        return self.impersonated_user is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_impersonating": self.is_impersonating,
            "impersonated_user": self.impersonated_user.model_dump() if self.impersonated_user else None,
        }


IDLE = ImpersonationState()
