from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from portalgate.core.context import use_impersonation, use_role_simulation
from portalgate.core.identity.models import ROLE_LABELS, UserRole
from portalgate.core.impersonation.manager import ImpersonationContext
from portalgate.core.simulation.manager import RoleSimulationContext
from portalgate.core.ux.details import OverlayDetailsLoader


class ImpersonationBannerModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    visible: bool = False
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    client_name: Optional[str] = None
    stop_action: Optional[str] = None


class RoleSimulationBannerModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    visible: bool = False
    role: Optional[str] = None
    role_label: Optional[str] = None
    actual_role_label: Optional[str] = None
    client_name: Optional[str] = None
    contact_name: Optional[str] = None
    contact_role: Optional[str] = None
    stop_action: Optional[str] = None


def _label(role: Optional[UserRole]) -> Optional[str]:
    if role is None:
        return None
    return ROLE_LABELS.get(role, role.value)


class ImpersonationBanner:
    """Passive view of the impersonation overlay; ``stop`` is its only action."""

    def __init__(self, ctx: Optional[ImpersonationContext] = None, *, stop_action: str = "/v1/impersonation/stop"):
        self.ctx = ctx if ctx is not None else use_impersonation()
        self.stop_action = stop_action

    def present(self) -> ImpersonationBannerModel:
        user = self.ctx.impersonated_user
        if user is None:
            return ImpersonationBannerModel()
        return ImpersonationBannerModel(
            visible=True,
            user_id=user.id,
            user_name=user.name,
            client_name=user.client_name,
            stop_action=self.stop_action,
        )

    def stop(self) -> bool:
        return self.ctx.stop_impersonation()


class RoleSimulationBanner:
    """
    Passive view of the simulation overlay.

    Client/contact names are advisory: they are requested for the current scoping
    and shown only if the lookup finished for that same scoping while the
    simulation is still active.
    """

    def __init__(
        self,
        ctx: Optional[RoleSimulationContext] = None,
        *,
        details: Optional[OverlayDetailsLoader] = None,
        stop_action: str = "/v1/simulation/stop",
    ):
        self.ctx = ctx if ctx is not None else use_role_simulation()
        self.details = details
        self.stop_action = stop_action

    def present(self) -> RoleSimulationBannerModel:
        st = self.ctx.snapshot()
        if not st.is_simulating:
            if self.details is not None:
                self.details.invalidate()
            return RoleSimulationBannerModel()

        client_name = contact_name = contact_role = None
        key = (st.simulated_client_id, st.simulated_contact_id)
        if self.details is not None and any(key):
            self.details.request(key)
            found = self.details.details(key)
            # the overlay may have been stopped or re-scoped while the lookup ran
            if found is not None and self.ctx.snapshot() is st:
                client_name, contact_name, contact_role = found.client_name, found.contact_name, found.contact_role

        return RoleSimulationBannerModel(
            visible=True,
            role=st.simulated_role.value if st.simulated_role else None,
            role_label=_label(st.simulated_role),
            actual_role_label=_label(self.ctx.actual_role),
            client_name=client_name,
            contact_name=contact_name,
            contact_role=contact_role,
            stop_action=self.stop_action,
        )

    def stop(self) -> bool:
        stopped = self.ctx.stop_simulation()
        if self.details is not None:
            self.details.invalidate()
        return stopped
