from __future__ import annotations

import os

import pytest

from portalgate.core.config.manager import ConfigManager
from portalgate.core.config.paths import ConfigFsPaths
from portalgate.core.events import EventBus
from portalgate.core.identity import UserRole

from .helpers.builders import signed_in_identity
from .helpers.fakes import FakeClock, FakeTimerFactory, RecordingAuditLogger


@pytest.fixture
def tmp_config_root(tmp_path):
    """
    Provides an isolated repo root with config/ under tmp_path.
    """
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    return fs


@pytest.fixture
def config_manager(tmp_config_root):
    cm = ConfigManager(fs=tmp_config_root, read_only=False)
    cm.load_all()
    return cm


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def audit():
    return RecordingAuditLogger()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def admin_identity():
    return signed_in_identity(UserRole.admin)
