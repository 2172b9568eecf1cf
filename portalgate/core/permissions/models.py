from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

PERMISSIONS_SCHEMA_VERSION = 1


class ModuleKey(str, Enum):
    dashboard = "dashboard"
    analytics = "analytics"
    ecommerce = "ecommerce"
    marketing = "marketing"
    campaigns = "campaigns"
    tasks = "tasks"
    team = "team"
    insights = "insights"
    ai_agent = "ai_agent"
    reports = "reports"
    leads = "leads"
    billing = "billing"
    approvals = "approvals"


ModuleAccessMap = Mapping[ModuleKey, bool]


def freeze_module_access(raw: Optional[Mapping[object, object]]) -> ModuleAccessMap:
    """
    Build a read-only ModuleAccessMap.

    Keys may be ModuleKey members or their string values; unknown keys are rejected.
    Modules missing from ``raw`` are recorded as not granted.
    """
    out: Dict[ModuleKey, bool] = {k: False for k in ModuleKey}
    for k, v in (raw or {}).items():
        out[ModuleKey(k)] = bool(v)
    return MappingProxyType(out)


class PermissionsConfig(BaseModel):
    """
    config/permissions.json schema.

    path_modules: path prefix -> module key (fail-open when a path is missing)
    admin_only_paths: prefixes blocked during simulation (fail-closed)
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: int = PERMISSIONS_SCHEMA_VERSION
    path_modules: Dict[str, ModuleKey] = Field(default_factory=dict)
    admin_only_paths: List[str] = Field(default_factory=list)
