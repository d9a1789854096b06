"""3D Life-like cellular automaton with decaying cell health."""

__version__ = "0.1.0"

from .core.rules import RuleTable, DEFAULT_RULES
from .core.grid import Grid
from .core.config import SimulationConfig
from .core.simulation import Simulation
from .core.instances import Instance, extract_instances

__all__ = [
    "RuleTable",
    "DEFAULT_RULES",
    "Grid",
    "SimulationConfig",
    "Simulation",
    "Instance",
    "extract_instances",
]
