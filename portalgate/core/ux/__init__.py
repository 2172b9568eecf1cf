from portalgate.core.ux.banners import (
    ImpersonationBanner,
    ImpersonationBannerModel,
    RoleSimulationBanner,
    RoleSimulationBannerModel,
)
from portalgate.core.ux.details import OverlayDetails, OverlayDetailsLoader
from portalgate.core.ux.dialogs import SessionTimeoutDialogModel, session_timeout_dialog

__all__ = [
    "ImpersonationBanner",
    "ImpersonationBannerModel",
    "RoleSimulationBanner",
    "RoleSimulationBannerModel",
    "OverlayDetails",
    "OverlayDetailsLoader",
    "SessionTimeoutDialogModel",
    "session_timeout_dialog",
]
