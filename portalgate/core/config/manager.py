from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from portalgate.core.config.io import atomic_write_json, read_json_file
from portalgate.core.config.models import (
    AppFileConfig,
    DirectoryConfig,
    PortalGateConfig,
    SimulationConfig,
    WebConfig,
)
from portalgate.core.config.paths import ConfigFsPaths
from portalgate.core.errors import ConfigError
from portalgate.core.logger import get_logger
from portalgate.core.permissions.loader import default_config_dict as default_permissions_dict
from portalgate.core.permissions.loader import validate_and_normalize as validate_permissions
from portalgate.core.session_timeout.models import SessionTimeoutConfig

_DEFAULTS: Dict[str, Callable[[], Dict[str, Any]]] = {
    "app.json": lambda: AppFileConfig().model_dump(mode="json"),
    "session.json": lambda: SessionTimeoutConfig().model_dump(mode="json"),
    "simulation.json": lambda: SimulationConfig().model_dump(mode="json"),
    "permissions.json": default_permissions_dict,
    "web.json": lambda: WebConfig().model_dump(mode="json"),
    "directory.json": lambda: DirectoryConfig().model_dump(mode="json"),
}


class ConfigManager:
    """
    Loads ``config/*.json`` into one validated ``PortalGateConfig``.

    Missing files are written with defaults. Unreadable or invalid files fail the
    whole load with ``ConfigError``; nothing is silently repaired.
    """

    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger: Optional[logging.Logger] = None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger or get_logger("config")
        self.read_only = read_only
        self._cfg: Optional[PortalGateConfig] = None

    # ---------- public API ----------
    def load_all(self) -> PortalGateConfig:
        if not self.read_only:
            os.makedirs(self.fs.config_dir, exist_ok=True)
        files = self._ensure_defaults(self._load_raw_files())
        cfg = self._validate_all(files)
        self._cfg = cfg
        return cfg

    def get(self) -> PortalGateConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def open_paths(self) -> Dict[str, str]:
        return {"config_dir": self.fs.config_dir, "logs_dir": self.fs.logs_dir}

    # ---------- internals ----------
    def _load_raw_files(self) -> Dict[str, Optional[Dict[str, Any]]]:
        out: Dict[str, Optional[Dict[str, Any]]] = {}
        for name in _DEFAULTS:
            rr = read_json_file(os.path.join(self.fs.config_dir, name))
            if rr.ok:
                out[name] = rr.data
            elif rr.missing:
                out[name] = None
            else:
                raise ConfigError(f"{name} is unreadable: {rr.error}", file=name)
        return out

    def _ensure_defaults(self, files: Dict[str, Optional[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for name, raw in files.items():
            if raw is not None:
                out[name] = raw
                continue
            data = _DEFAULTS[name]()
            if not self.read_only:
                atomic_write_json(os.path.join(self.fs.config_dir, name), data)
                self.logger.info("Created default config %s", name)
            out[name] = data
        return out

    def _validate_all(self, files: Dict[str, Dict[str, Any]]) -> PortalGateConfig:
        try:
            app = AppFileConfig.model_validate(files["app.json"])
            session = SessionTimeoutConfig.model_validate(files["session.json"])
            simulation = SimulationConfig.model_validate(files["simulation.json"])
            web = WebConfig.model_validate(files["web.json"])
            directory = DirectoryConfig.model_validate(files["directory.json"])
        except ValidationError as e:
            raise ConfigError(f"Config validation failed: {e}") from e
        permissions = validate_permissions(files["permissions.json"])
        return PortalGateConfig(app=app, session=session, simulation=simulation, permissions=permissions, web=web, directory=directory)
