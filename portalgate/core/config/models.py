from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portalgate.core.events.bus import EventBusConfig
from portalgate.core.guard.models import RoutesConfig
from portalgate.core.permissions.models import PermissionsConfig
from portalgate.core.session_timeout.models import SessionTimeoutConfig
from portalgate.core.simulation.models import ConflictPolicy

CONFIG_VERSION = 1


class AppFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=CONFIG_VERSION, ge=1)
    log_level: str = "INFO"
    routes: RoutesConfig = Field(default_factory=RoutesConfig)
    events: EventBusConfig = Field(default_factory=EventBusConfig)
    notices_keep_last: int = Field(default=50, ge=1, le=1000)

    @field_validator("log_level")
    @classmethod
    def _level(cls, v: str) -> str:
        v = str(v or "").upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be a standard logging level name")
        return v


class SimulationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    on_conflict: ConflictPolicy = ConflictPolicy.reject


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    bind_host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    details_workers: int = Field(default=2, ge=1, le=16)


class DirectoryConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # unset -> in-memory directory
    base_url: Optional[str] = None
    timeout_seconds: float = Field(default=3.0, gt=0.0, le=60.0)
    headers: Dict[str, str] = Field(default_factory=dict)


class PortalGateConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    app: AppFileConfig
    session: SessionTimeoutConfig
    simulation: SimulationConfig
    permissions: PermissionsConfig
    web: WebConfig
    directory: DirectoryConfig
