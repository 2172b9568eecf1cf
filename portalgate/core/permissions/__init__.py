from portalgate.core.permissions.models import ModuleAccessMap, ModuleKey, PermissionsConfig, freeze_module_access
from portalgate.core.permissions.resolver import (
    ModulePermissionResolver,
    default_resolver,
    is_admin_only_path,
    normalize_path,
    resolve_required_module,
)

__all__ = [
    "ModuleAccessMap",
    "ModuleKey",
    "PermissionsConfig",
    "freeze_module_access",
    "ModulePermissionResolver",
    "default_resolver",
    "is_admin_only_path",
    "normalize_path",
    "resolve_required_module",
]
