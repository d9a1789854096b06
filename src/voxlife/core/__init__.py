"""Core cellular automata logic."""

from .errors import ConfigurationError, InvariantViolation
from .rules import RuleTable, DEFAULT_RULES
from .cell import Cell, next_health, cell_color
from .grid import Grid
from .config import SimulationConfig
from .instances import Instance, extract_instances, instances_to_array
from .simulation import Simulation
from .patterns import Pattern, PatternLibrary

__all__ = [
    "ConfigurationError",
    "InvariantViolation",
    "RuleTable",
    "DEFAULT_RULES",
    "Cell",
    "next_health",
    "cell_color",
    "Grid",
    "SimulationConfig",
    "Instance",
    "extract_instances",
    "instances_to_array",
    "Simulation",
    "Pattern",
    "PatternLibrary",
]
