from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError

from portalgate.core.errors import ConfigError
from portalgate.core.permissions.defaults import ADMIN_ONLY_PATHS, PATH_TO_MODULE
from portalgate.core.permissions.models import PERMISSIONS_SCHEMA_VERSION, PermissionsConfig


def default_config_dict() -> Dict[str, Any]:
    return {
        "schema_version": PERMISSIONS_SCHEMA_VERSION,
        "path_modules": {path: key.value for path, key in PATH_TO_MODULE.items()},
        "admin_only_paths": list(ADMIN_ONLY_PATHS),
    }


def validate_and_normalize(raw: Dict[str, Any]) -> PermissionsConfig:
    if not isinstance(raw, dict):
        raise ConfigError("permissions.json must be an object.")
    try:
        schema_version = int(raw.get("schema_version", PERMISSIONS_SCHEMA_VERSION))
    except (TypeError, ValueError) as e:
        raise ConfigError("permissions.json schema_version must be an integer.") from e
    if schema_version != PERMISSIONS_SCHEMA_VERSION:
        raise ConfigError(f"permissions.json schema_version mismatch (expected {PERMISSIONS_SCHEMA_VERSION}).")
    try:
        cfg = PermissionsConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(str(e), file="permissions.json") from e

    for path in list(cfg.path_modules.keys()) + list(cfg.admin_only_paths):
        if not str(path).startswith("/"):
            raise ConfigError(f"permissions.json path '{path}' must start with '/'.")

    # An admin-only path must not be reachable through the module map alone.
    overlap = sorted(set(cfg.path_modules.keys()) & set(cfg.admin_only_paths))
    if overlap:
        raise ConfigError(f"permissions.json paths are both module-mapped and admin-only: {overlap}")
    return cfg
