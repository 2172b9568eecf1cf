from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from portalgate.core.permissions.defaults import ADMIN_ONLY_PATHS, PATH_TO_MODULE
from portalgate.core.permissions.models import ModuleKey, PermissionsConfig


def normalize_path(path: str) -> str:
    """Strip query/fragment and trailing slashes; always returns a path starting with '/'."""
    p = str(path or "").split("?", 1)[0].split("#", 1)[0].strip()
    if not p.startswith("/"):
        p = "/" + p
    while len(p) > 1 and p.endswith("/"):
        p = p[:-1]
    return p


class ModulePermissionResolver:
    """
    Pure lookup over two static tables with deliberately different failure policies:

    - PathModuleTable: missing entry -> no module required (fail-open)
    - AdminOnlyPathSet: any prefix match -> blocked under simulation (fail-closed)
    """

    def __init__(self, path_modules: Mapping[str, Union[ModuleKey, str]], admin_only_paths: Iterable[str]):
        table: Dict[str, ModuleKey] = {normalize_path(p): ModuleKey(k) for p, k in path_modules.items()}
        self._path_modules = table
        # longest first so the first hit is the longest prefix
        self._prefixes: Tuple[str, ...] = tuple(sorted(table.keys(), key=len, reverse=True))
        self._admin_only: Tuple[str, ...] = tuple(normalize_path(p) for p in admin_only_paths)

    @classmethod
    def from_config(cls, cfg: PermissionsConfig) -> "ModulePermissionResolver":
        return cls(cfg.path_modules, cfg.admin_only_paths)

    @property
    def path_modules(self) -> Dict[str, ModuleKey]:
        return dict(self._path_modules)

    @property
    def admin_only_paths(self) -> Tuple[str, ...]:
        return self._admin_only

    def resolve_required_module(self, path: str, explicit_key: Optional[Union[ModuleKey, str]] = None) -> Optional[ModuleKey]:
        if explicit_key is not None:
            return ModuleKey(explicit_key)
        p = normalize_path(path)
        hit = self._path_modules.get(p)
        if hit is not None:
            return hit
        for prefix in self._prefixes:
            if prefix != "/" and p.startswith(prefix + "/"):
                return self._path_modules[prefix]
        return None

    def is_admin_only_path(self, path: str) -> bool:
        p = normalize_path(path)
        return any(p.startswith(prefix) for prefix in self._admin_only)


_DEFAULT = ModulePermissionResolver(PATH_TO_MODULE, ADMIN_ONLY_PATHS)


def default_resolver() -> ModulePermissionResolver:
    return _DEFAULT


def resolve_required_module(path: str, explicit_key: Optional[Union[ModuleKey, str]] = None) -> Optional[ModuleKey]:
    return _DEFAULT.resolve_required_module(path, explicit_key)


def is_admin_only_path(path: str) -> bool:
    return _DEFAULT.is_admin_only_path(path)
