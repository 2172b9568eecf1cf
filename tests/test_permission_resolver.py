from __future__ import annotations

import pytest

from portalgate.core.errors import ConfigError
from portalgate.core.permissions import ModuleKey, ModulePermissionResolver, freeze_module_access
from portalgate.core.permissions.defaults import ADMIN_ONLY_PATHS, PATH_TO_MODULE
from portalgate.core.permissions.loader import default_config_dict, validate_and_normalize
from portalgate.core.permissions.resolver import is_admin_only_path, normalize_path, resolve_required_module


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/analytics", ModuleKey.analytics),
        ("/analytics/", ModuleKey.analytics),
        ("/analytics?range=30d", ModuleKey.analytics),
        ("/analytics/traffic/sources", ModuleKey.analytics),
        ("/google-shopping", ModuleKey.ecommerce),
        ("/ai-insights", ModuleKey.ai_agent),
        ("/projects/42", ModuleKey.tasks),
    ],
)
def test_mapped_paths_resolve_to_module(path, expected):
    assert resolve_required_module(path) == expected


def test_prefix_match_respects_segment_boundaries():
    assert resolve_required_module("/analyticsx") is None
    assert resolve_required_module("/teammates") is None


def test_unmapped_path_requires_nothing():
    assert resolve_required_module("/profile") is None
    assert resolve_required_module("/") is None


def test_explicit_key_overrides_table():
    assert resolve_required_module("/profile", ModuleKey.reports) == ModuleKey.reports
    assert resolve_required_module("/analytics", "billing") == ModuleKey.billing


def test_admin_only_prefixes():
    for p in ADMIN_ONLY_PATHS:
        assert is_admin_only_path(p)
        assert is_admin_only_path(p + "/detail")
    assert is_admin_only_path("/client-management?tab=users")
    assert not is_admin_only_path("/dashboard")
    assert not is_admin_only_path("/analytics")


def test_normalize_path():
    assert normalize_path("analytics/") == "/analytics"
    assert normalize_path("/a/b///") == "/a/b"
    assert normalize_path("") == "/"
    assert normalize_path("/x#frag") == "/x"


def test_freeze_module_access_is_total_and_read_only():
    m = freeze_module_access({"dashboard": True, ModuleKey.analytics: 0})
    assert set(m.keys()) == set(ModuleKey)
    assert m[ModuleKey.dashboard] is True
    assert m[ModuleKey.analytics] is False
    assert m[ModuleKey.billing] is False
    with pytest.raises(TypeError):
        m[ModuleKey.billing] = True  # type: ignore[index]


def test_freeze_module_access_rejects_unknown_keys():
    with pytest.raises(ValueError):
        freeze_module_access({"teleport": True})


def test_custom_tables():
    r = ModulePermissionResolver({"/reports/": "reports", "/reports/finance": "billing"}, ["/ops"])
    assert r.resolve_required_module("/reports/finance/q1") == ModuleKey.billing
    assert r.resolve_required_module("/reports/ops") == ModuleKey.reports
    assert r.is_admin_only_path("/ops/queues")
    assert r.path_modules["/reports"] == ModuleKey.reports


def test_default_config_round_trips_through_loader():
    cfg = validate_and_normalize(default_config_dict())
    r = ModulePermissionResolver.from_config(cfg)
    assert r.path_modules == {p: k for p, k in PATH_TO_MODULE.items()}
    assert set(r.admin_only_paths) == set(ADMIN_ONLY_PATHS)


def test_loader_rejects_bad_configs():
    with pytest.raises(ConfigError):
        validate_and_normalize({"schema_version": 99})
    with pytest.raises(ConfigError):
        validate_and_normalize({"path_modules": {"analytics": "analytics"}})
    with pytest.raises(ConfigError):
        validate_and_normalize({"path_modules": {"/x": "not-a-module"}})
    with pytest.raises(ConfigError):
        validate_and_normalize({"path_modules": {"/clients": "leads"}, "admin_only_paths": ["/clients"]})
    with pytest.raises(ConfigError):
        validate_and_normalize(["/x"])  # type: ignore[arg-type]
