from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.root, "logs")

    # Files
    @property
    def app(self) -> str:
        return os.path.join(self.config_dir, "app.json")

    @property
    def session(self) -> str:
        return os.path.join(self.config_dir, "session.json")

    @property
    def simulation(self) -> str:
        return os.path.join(self.config_dir, "simulation.json")

    @property
    def permissions(self) -> str:
        return os.path.join(self.config_dir, "permissions.json")

    @property
    def web(self) -> str:
        return os.path.join(self.config_dir, "web.json")

    @property
    def directory(self) -> str:
        return os.path.join(self.config_dir, "directory.json")
