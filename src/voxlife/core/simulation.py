"""3D Life-like simulation engine with decaying cell health."""

from typing import Callable, Deque, Dict, List, Optional, Tuple, Union
from collections import deque
import hashlib
import numpy as np
import torch

from .cell import DEAD_HEALTH
from .config import SimulationConfig
from .errors import ConfigurationError
from .grid import Grid
from .instances import Instance, extract_instances
from .rules import RuleTable


class Simulation:
    """Runs a 3D automaton over a Grid, one tick at a time.

    Each tick has two phases. First every neighbor count is recomputed from
    the health values of the previous tick. Then every cell moves to its
    next health:

    - Alive cells stay alive if the survival rule holds, else start dying
    - Dead cells become alive if the spawn rule holds
    - Dying cells lose one health point, whatever their neighbors
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[Union[np.random.Generator, int]] = None,
        grid: Optional[Grid] = None,
    ) -> None:
        """Initialize the simulation.

        Args:
            config: Simulation configuration; defaults are used if omitted
            rng: Random generator or seed for initial seeding; falls back
                to ``config.seed``
            grid: Existing grid to simulate instead of building and seeding
                a new one. Its size and max health must match the config.
        """
        self.config = config or SimulationConfig()
        self.rules: RuleTable = self.config.rules
        self._rng = np.random.default_rng(self.config.seed if rng is None else rng)

        if grid is None:
            self.grid = Grid(self.config.size, self.config.max_health)
            self.seed()
        else:
            if grid.size != self.config.size or grid.max_health != self.config.max_health:
                raise ConfigurationError(
                    f"Grid {grid.size}^3 (max health {grid.max_health}) does not match "
                    f"config {self.config.size}^3 (max health {self.config.max_health})"
                )
            self.grid = grid

        self._survives, self._spawns = self.rules.as_tensors()
        self._generation = 0
        self._population_history: Deque[int] = deque(maxlen=100)
        self._seen_states: Dict[bytes, int] = {}
        self._cycle_detected = False
        self._cycle_length = 0
        self._cycle_start_generation = 0

        self._update_population_history()

    @classmethod
    def from_grid(cls, grid: Grid, rules: RuleTable) -> "Simulation":
        """Wrap a hand-built grid without reseeding it."""
        config = SimulationConfig(size=grid.size, max_health=grid.max_health, rules=rules)
        return cls(config, grid=grid)

    @property
    def generation(self) -> int:
        """Current generation number."""
        return self._generation

    @property
    def population(self) -> int:
        """Current number of fully alive cells."""
        return self.grid.alive_count

    @property
    def visible_count(self) -> int:
        """Current number of alive or dying cells."""
        return self.grid.visible_count

    @property
    def population_history(self) -> list:
        """History of alive cell counts."""
        return list(self._population_history)

    @property
    def cycle_detected(self) -> bool:
        return self._cycle_detected

    @property
    def cycle_length(self) -> int:
        return self._cycle_length

    @property
    def cycle_start_generation(self) -> int:
        return self._cycle_start_generation

    def seed(self) -> None:
        """Randomly seed the central region and kill every other cell.

        Each cell whose coordinates all fall in ``config.seed_region`` is
        alive with probability ``config.alive_probability``.
        """
        self.grid.clear()
        low, high = self.config.seed_region
        span = high - low + 1
        alive = self._rng.random((span, span, span)) < self.config.alive_probability

        region = self.grid.health[low:high + 1, low:high + 1, low:high + 1]
        region[alive] = self.grid.max_health

    def tick(self) -> None:
        """Advance the simulation by exactly one step."""
        self._check_for_cycles()

        self.grid.refresh_neighbor_counts()
        self._apply_rules()

        self._generation += 1
        self._update_population_history()

    def step(self) -> None:
        """Alias of tick()."""
        self.tick()

    def extract_instances(self) -> List[Instance]:
        """Snapshot of visible cells for rendering. Does not change state."""
        return extract_instances(self.grid)

    def _apply_rules(self) -> None:
        """Move every cell to its next health using the fresh neighbor counts."""
        max_health = self.grid.max_health
        health = self.grid.health
        counts = torch.from_numpy(self.grid.neighbor_counts.astype(np.int64))

        survives = self._survives[counts].numpy()
        spawns = self._spawns[counts].numpy()

        # Masks are taken from the frozen pre-tick health
        alive = health == max_health
        dead = health < 0
        dying = ~alive & ~dead

        next_health = np.empty_like(health)
        next_health[alive] = np.where(survives[alive], max_health, max_health - 1)
        next_health[dead] = np.where(spawns[dead], max_health, DEAD_HEALTH)
        next_health[dying] = health[dying] - 1

        health[:] = next_health

    def run(self, ticks: int) -> None:
        """Advance the simulation by a number of ticks."""
        for _ in range(ticks):
            self.tick()

    def run_until_stable(
        self,
        max_generations: int = 10000,
        on_tick: Optional[Callable[["Simulation"], None]] = None,
    ) -> Tuple[int, str]:
        """Run simulation until it dies out or repeats a state.

        Args:
            max_generations: Maximum generations to run
            on_tick: Called with the simulation after every tick

        Returns:
            Tuple of (final_generation, reason) where reason is one of:
            'cycle', 'extinction', 'max_generations'
        """
        for _ in range(max_generations):
            self.tick()
            if on_tick is not None:
                on_tick(self)

            if self._cycle_detected:
                return self._generation, "cycle"

            if self.visible_count == 0:
                return self._generation, "extinction"

        return self._generation, "max_generations"

    def reset(self, reseed: bool = True) -> None:
        """Reset the simulation.

        Args:
            reseed: Whether to reseed the grid; otherwise it is cleared
        """
        if reseed:
            self.seed()
        else:
            self.grid.clear()

        self._generation = 0
        self._population_history.clear()
        self.clear_cycle_detection()
        self._update_population_history()

    def clear_cycle_detection(self) -> None:
        """Forget seen states, e.g. after editing the grid by hand."""
        self._cycle_detected = False
        self._cycle_length = 0
        self._cycle_start_generation = 0
        self._seen_states.clear()

    def _update_population_history(self) -> None:
        self._population_history.append(self.population)

    def _check_for_cycles(self) -> None:
        """Check if the current state has been seen before."""
        if self._cycle_detected:
            return

        # Fixed-size digest per state
        current_state = hashlib.blake2b(self.grid.health.tobytes(), digest_size=16).digest()

        if current_state in self._seen_states:
            first_occurrence = self._seen_states[current_state]
            self._cycle_detected = True
            self._cycle_length = self._generation - first_occurrence
            self._cycle_start_generation = first_occurrence
            return

        self._seen_states[current_state] = self._generation

        # Bound memory on long runs
        if len(self._seen_states) > 1000:
            oldest = min(self._seen_states, key=self._seen_states.get)
            del self._seen_states[oldest]

    def get_population_change_rate(self, window_size: int = 10) -> float:
        """Average change in alive cells per generation over recent history."""
        recent_history = list(self._population_history)[-window_size:]
        if len(recent_history) < 2:
            return 0.0

        return float(np.mean(np.diff(recent_history)))

    def get_statistics(self) -> Dict:
        """Get simulation statistics.

        Returns:
            Dictionary with various statistics
        """
        bbox = self.grid.get_bounding_box()
        cell_count = self.grid.cell_count

        stats = {
            "generation": self._generation,
            "population": self.population,
            "dying": self.grid.dying_count,
            "visible": self.visible_count,
            "population_change_rate": self.get_population_change_rate(),
            "population_history": list(self._population_history),
            "cycle_detected": self._cycle_detected,
            "cycle_length": self._cycle_length,
            "cycle_start_generation": self._cycle_start_generation,
            "grid_size": self.grid.shape,
            "max_health": self.grid.max_health,
            "rules": str(self.rules),
            "population_density": self.population / cell_count,
        }

        if bbox:
            stats["bounding_box"] = bbox
            stats["bounding_box_size"] = (
                bbox[3] - bbox[0] + 1,
                bbox[4] - bbox[1] + 1,
                bbox[5] - bbox[2] + 1,
            )
        else:
            stats["bounding_box"] = None
            stats["bounding_box_size"] = (0, 0, 0)

        return stats
