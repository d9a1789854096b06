"""Per-cell state, classification and the health transition rule."""

from dataclasses import dataclass
from typing import Tuple

from .errors import InvariantViolation
from .rules import RuleTable

DEAD_HEALTH = -1

# Highlight color for fully alive cells
ALIVE_COLOR: Tuple[float, float, float] = (0.9, 0.0, 0.0)

ALIVE = "alive"
DYING = "dying"
DEAD = "dead"


def classify(health: int, max_health: int) -> str:
    """Classify a health value as alive, dying or dead.

    Raises:
        InvariantViolation: If health is outside {-1} ∪ [0, max_health]
    """
    if health == max_health:
        return ALIVE
    if 0 <= health < max_health:
        return DYING
    if health == DEAD_HEALTH:
        return DEAD
    raise InvariantViolation(f"Health {health} outside {{-1}} ∪ [0, {max_health}]")


def next_health(health: int, max_health: int, neighbor_count: int, rules: RuleTable) -> int:
    """Compute a cell's health for the next tick.

    Alive cells stay alive while the survival rule holds and start dying
    otherwise. Dead cells come alive when the spawn rule holds. Dying cells
    lose one point of health every tick and never consult the rules.

    Args:
        health: Current health
        max_health: Health of a fully alive cell
        neighbor_count: Alive neighbors counted before this tick
        rules: Survival and spawn tables

    Returns:
        Next health value
    """
    state = classify(health, max_health)

    if state == ALIVE:
        if rules.survives(neighbor_count):
            return max_health
        return max_health - 1

    if state == DEAD:
        if rules.spawns(neighbor_count):
            return max_health
        return DEAD_HEALTH

    return health - 1


def cell_color(health: int, max_health: int) -> Tuple[float, float, float]:
    """Render color for a visible cell.

    Alive cells get the highlight color. Dying cells fade through gray as
    their health drops.
    """
    if health == max_health:
        return ALIVE_COLOR
    intensity = (1.0 + health) / (max_health + 2.0)
    return (intensity, intensity, intensity)


@dataclass(frozen=True)
class Cell:
    """Snapshot of one lattice point.

    Cells are read from a Grid; mutating the grid does not change a Cell
    that was already returned.
    """

    coords: Tuple[int, int, int]
    position: Tuple[float, float, float]
    health: int
    neighbor_count: int
    max_health: int

    @property
    def state(self) -> str:
        return classify(self.health, self.max_health)

    @property
    def is_alive(self) -> bool:
        return self.health == self.max_health

    @property
    def is_dying(self) -> bool:
        return 0 <= self.health < self.max_health

    @property
    def is_dead(self) -> bool:
        return self.health < 0

    @property
    def is_visible(self) -> bool:
        return self.health >= 0

    @property
    def color(self) -> Tuple[float, float, float]:
        return cell_color(self.health, self.max_health)

    def next_health(self, rules: RuleTable) -> int:
        """Health this cell would have after the next tick."""
        return next_health(self.health, self.max_health, self.neighbor_count, rules)
