from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    super_admin = "super_admin"
    admin = "admin"
    agency_manager = "agency_manager"
    team_manager = "team_manager"
    employee = "employee"
    premium_client = "premium_client"
    basic_client = "basic_client"
    demo = "demo"


# Highest privilege first.
ROLE_HIERARCHY: List[UserRole] = [
    UserRole.super_admin,
    UserRole.admin,
    UserRole.agency_manager,
    UserRole.team_manager,
    UserRole.employee,
    UserRole.premium_client,
    UserRole.basic_client,
    UserRole.demo,
]

ROLE_LABELS: Dict[UserRole, str] = {
    UserRole.super_admin: "Super admin",
    UserRole.admin: "Admin",
    UserRole.agency_manager: "Agency manager",
    UserRole.team_manager: "Team manager",
    UserRole.employee: "Employee",
    UserRole.premium_client: "Premium client",
    UserRole.basic_client: "Basic client",
    UserRole.demo: "Demo",
}

# Roles allowed to start a role simulation or an impersonation.
OVERLAY_ROLES = frozenset({UserRole.super_admin, UserRole.admin})


def role_rank(role: UserRole) -> int:
    return ROLE_HIERARCHY.index(role)


def roles_at_or_below(role: Optional[UserRole]) -> List[UserRole]:
    if role is None:
        return []
    rank = role_rank(role)
    return [r for r in ROLE_HIERARCHY if role_rank(r) >= rank]


class Principal(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    display_name: str = Field(default="", max_length=120)
    role: Optional[UserRole] = None
    is_authenticated: bool = True
    is_loading: bool = False


class IdentitySnapshot(BaseModel):
    """What the identity provider exposes: ``{user, role, loading}``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    user: Optional[Principal] = None
    role: Optional[UserRole] = None
    loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.user.is_authenticated)
