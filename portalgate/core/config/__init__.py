from portalgate.core.config.manager import ConfigManager
from portalgate.core.config.models import (
    AppFileConfig,
    DirectoryConfig,
    PortalGateConfig,
    SimulationConfig,
    WebConfig,
)
from portalgate.core.config.paths import ConfigFsPaths

__all__ = [
    "ConfigManager",
    "ConfigFsPaths",
    "AppFileConfig",
    "DirectoryConfig",
    "PortalGateConfig",
    "SimulationConfig",
    "WebConfig",
]
