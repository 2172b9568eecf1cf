from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from portalgate.core.identity.models import UserRole
from portalgate.core.permissions.models import ModuleAccessMap


class ConflictPolicy(str, Enum):
    """What ``start_simulation`` does when a simulation for another role is active."""

    reject = "reject"
    overwrite = "overwrite"


@dataclass(frozen=True)
class SimulationScoping:
    client_id: Optional[str] = None
    contact_id: Optional[str] = None


@dataclass(frozen=True)
class SimulationState:
    """
    One immutable snapshot of the simulation overlay.

    simulating <=> simulated_role and simulated_modules are both set.
    """

    simulated_role: Optional[UserRole] = None
    simulated_modules: Optional[ModuleAccessMap] = None
    simulated_client_id: Optional[str] = None
    simulated_contact_id: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.simulated_role is None) != (self.simulated_modules is None):
            raise ValueError("simulated_role and simulated_modules must be set together")
        if self.simulated_role is None and (self.simulated_client_id or self.simulated_contact_id):
            raise ValueError("scoping requires an active simulation")

    @property
    def is_simulating(self) -> bool:
        return self.simulated_role is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_simulating": self.is_simulating,
            "simulated_role": self.simulated_role.value if self.simulated_role else None,
            "simulated_client_id": self.simulated_client_id,
            "simulated_contact_id": self.simulated_contact_id,
            "simulated_modules": ({k.value: bool(v) for k, v in self.simulated_modules.items()} if self.simulated_modules is not None else None),
        }


IDLE = SimulationState()
