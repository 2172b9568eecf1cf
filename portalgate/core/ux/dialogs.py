from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from portalgate.core.context import use_session_timeout
from portalgate.core.session_timeout.models import SessionPhase
from portalgate.core.session_timeout.monitor import SessionTimeoutMonitor


class SessionTimeoutDialogModel(BaseModel):
    """Countdown dialog: ``{open, remaining_seconds, extend_action}``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    open: bool = False
    remaining_seconds: int = Field(default=0, ge=0)
    extend_action: str = "/v1/session/extend"
    sign_in_required: bool = False


def session_timeout_dialog(monitor: Optional[SessionTimeoutMonitor] = None, *, extend_action: str = "/v1/session/extend") -> SessionTimeoutDialogModel:
    st = (monitor if monitor is not None else use_session_timeout()).state()
    return SessionTimeoutDialogModel(
        open=st.phase == SessionPhase.warning,
        remaining_seconds=max(0, int(st.remaining_seconds)) if st.phase == SessionPhase.warning else 0,
        extend_action=extend_action,
        sign_in_required=st.phase == SessionPhase.sign_in_required,
    )
