from portalgate.core.simulation.manager import RoleSimulationContext
from portalgate.core.simulation.models import ConflictPolicy, SimulationScoping, SimulationState

__all__ = ["RoleSimulationContext", "ConflictPolicy", "SimulationScoping", "SimulationState"]
