"""Construction-time configuration for a simulation."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ConfigurationError
from .rules import DEFAULT_RULES, RuleTable

DEFAULT_SIZE = 50
DEFAULT_MAX_HEALTH = 10
DEFAULT_ALIVE_PROBABILITY = 0.85


@dataclass(frozen=True)
class SimulationConfig:
    """Plain configuration values supplied when a simulation is built.

    Nothing here can be changed once the simulation exists.
    """

    size: int = DEFAULT_SIZE
    max_health: int = DEFAULT_MAX_HEALTH
    rules: RuleTable = field(default=DEFAULT_RULES)
    alive_probability: float = DEFAULT_ALIVE_PROBABILITY
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.size, int) or self.size <= 0:
            raise ConfigurationError(f"Grid size must be a positive integer, got {self.size!r}")
        if not isinstance(self.max_health, int) or self.max_health < 0:
            raise ConfigurationError(
                f"Max health must be a non-negative integer, got {self.max_health!r}"
            )
        if not isinstance(self.rules, RuleTable):
            raise ConfigurationError(f"Rules must be a RuleTable, got {type(self.rules).__name__}")
        if not 0.0 <= self.alive_probability <= 1.0:
            raise ConfigurationError(
                f"Alive probability must be between 0.0 and 1.0, got {self.alive_probability}"
            )

    @property
    def seed_region(self) -> Tuple[int, int]:
        """Inclusive (low, high) bounds of the seeding region on each axis."""
        return (self.size // 3, self.size * 2 // 3)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary of plain values."""
        return {
            "size": self.size,
            "max_health": self.max_health,
            "rules": str(self.rules),
            "alive_probability": self.alive_probability,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        """Create a configuration from plain values.

        ``rules`` may be a RuleTable, B/S notation, or a mapping with
        ``survives`` and ``spawns`` tables.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid
        """
        known = {"size", "max_health", "rules", "alive_probability", "seed"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        values = dict(data)
        if "rules" in values:
            values["rules"] = _coerce_rules(values["rules"])
        return cls(**values)


def _coerce_rules(value: Union[RuleTable, str, Dict[str, Any]]) -> RuleTable:
    if isinstance(value, RuleTable):
        return value
    if isinstance(value, str):
        return RuleTable.from_string(value)
    if isinstance(value, dict):
        try:
            return RuleTable(value["survives"], value["spawns"])
        except KeyError as e:
            raise ConfigurationError(f"Rule table mapping is missing {e}")
    raise ConfigurationError(f"Cannot build rules from {type(value).__name__}")
