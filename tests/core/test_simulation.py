"""Tests for the Simulation class."""

from itertools import product

import numpy as np
import pytest

from voxlife.core.cell import next_health
from voxlife.core.config import SimulationConfig
from voxlife.core.errors import ConfigurationError
from voxlife.core.grid import Grid
from voxlife.core.patterns import PatternLibrary
from voxlife.core.rules import DEFAULT_RULES, RuleTable
from voxlife.core.simulation import Simulation

NEVER = RuleTable([False] * 27, [False] * 27)
ALWAYS = RuleTable([True] * 27, [True] * 27)


def make_simulation(size, max_health, rules=DEFAULT_RULES):
    grid = Grid(size, max_health)
    return grid, Simulation.from_grid(grid, rules)


class TestTick:
    """Test single-tick behavior."""

    def test_center_cell_end_to_end(self):
        """A lone cell with no rules dies over two ticks."""
        grid, sim = make_simulation(3, 1, NEVER)
        grid.set_alive(1, 1, 1)
        assert len(sim.extract_instances()) == 1

        sim.tick()
        assert grid.get_health(1, 1, 1) == 0
        assert len(sim.extract_instances()) == 1

        sim.tick()
        assert grid.get_health(1, 1, 1) == -1
        assert len(sim.extract_instances()) == 0
        assert sim.generation == 2

    def test_isolated_cell_starts_dying(self):
        """survives(0) is False for the reference rules."""
        grid, sim = make_simulation(5, 10)
        grid.set_alive(2, 2, 2)

        sim.tick()

        assert grid.get_health(2, 2, 2) == 9
        assert grid.alive_count == 0
        assert grid.visible_count == 1

    def test_stable_block(self):
        """Every cell of a 2x2x2 block has 7 neighbors and survives on 7."""
        grid, sim = make_simulation(6, 10, RuleTable.from_counts(survive=[7], spawn=[]))
        PatternLibrary().get_pattern("Block").apply_to_grid(grid, 2, 2, 2)
        before = grid.copy_health()

        for _ in range(5):
            sim.tick()

        assert np.array_equal(grid.health, before)
        assert grid.alive_count == 8

    def test_dying_ignores_neighbors(self):
        """A dying cell decays by one even when every rule fires."""
        grid, sim = make_simulation(5, 10, ALWAYS)
        for x, y, z in product(range(1, 4), repeat=3):
            grid.set_alive(x, y, z)
        grid.set_health(2, 2, 2, 5)

        sim.tick()

        assert grid.get_health(2, 2, 2) == 4

        sim.tick()
        assert grid.get_health(2, 2, 2) == 3

    def test_spawn(self):
        """Dead cells with a spawning count become fully alive."""
        grid, sim = make_simulation(5, 10, RuleTable.from_counts(survive=[], spawn=[1]))
        grid.set_alive(2, 2, 2)

        sim.tick()

        assert grid.get_health(2, 2, 2) == 9
        assert grid.get_health(1, 1, 1) == 10
        assert grid.get_health(3, 2, 2) == 10
        assert grid.get_health(0, 2, 2) == -1
        assert grid.get_health(4, 4, 4) == -1

    def test_counts_come_from_previous_tick(self):
        """Cells spawned this tick do not feed counts of the same tick."""
        grid, sim = make_simulation(5, 10, RuleTable.from_counts(survive=[], spawn=[1]))
        grid.set_alive(2, 2, 2)

        sim.tick()

        assert grid.alive_count == 26
        assert grid.visible_count == 27

    def test_vectorised_matches_scalar_rule(self):
        """The whole-grid pass agrees with next_health for every cell."""
        rng = np.random.default_rng(99)
        grid, sim = make_simulation(7, 4)
        grid.health[:] = rng.integers(-1, 5, size=grid.shape)

        expected = {}
        for x, y, z in product(range(7), repeat=3):
            count = grid.neighbor_count(x, y, z)
            expected[(x, y, z)] = next_health(grid.get_health(x, y, z), 4, count, DEFAULT_RULES)

        sim.tick()

        for coords, health in expected.items():
            assert grid.get_health(*coords) == health

    def test_invariants_over_many_ticks(self):
        """Cell count and health range hold on a seeded run."""
        sim = Simulation(SimulationConfig(size=12, max_health=5, seed=3))
        for _ in range(15):
            sim.tick()
            health = sim.grid.health
            assert health.size == 12 ** 3
            assert np.all((health == -1) | ((health >= 0) & (health <= 5)))

    def test_alive_stays_alive_when_survival_holds(self):
        """Every alive cell whose count survives is alive after the tick."""
        sim = Simulation(SimulationConfig(size=10, max_health=6, seed=11))
        grid = sim.grid
        for _ in range(3):
            grid.refresh_neighbor_counts()
            counts = grid.neighbor_counts.copy()
            alive = grid.alive_mask.copy()
            survives = np.vectorize(DEFAULT_RULES.survives)(counts)

            sim.tick()

            assert np.all(grid.health[alive & survives] == 6)
            assert np.all(grid.health[alive & ~survives] == 5)


class TestSeeding:
    """Test initial random seeding."""

    def test_deterministic_with_seed(self):
        a = Simulation(SimulationConfig(size=9, seed=7))
        b = Simulation(SimulationConfig(size=9, seed=7))
        assert a.grid == b.grid

    def test_injected_generator(self):
        config = SimulationConfig(size=9)
        a = Simulation(config, rng=np.random.default_rng(5))
        b = Simulation(config, rng=5)
        assert a.grid == b.grid

    def test_seed_region_only(self):
        """Only the central region is seeded; the rest starts dead."""
        sim = Simulation(SimulationConfig(size=9, alive_probability=1.0))
        low, high = sim.config.seed_region
        assert (low, high) == (3, 6)

        inside = np.zeros(sim.grid.shape, dtype=bool)
        inside[low:high + 1, low:high + 1, low:high + 1] = True

        assert np.all(sim.grid.health[inside] == sim.grid.max_health)
        assert np.all(sim.grid.health[~inside] == -1)
        assert sim.population == 4 ** 3

    def test_zero_probability(self):
        sim = Simulation(SimulationConfig(size=9, alive_probability=0.0))
        assert sim.population == 0
        assert sim.visible_count == 0

    def test_seeded_cells_are_alive_or_dead(self):
        sim = Simulation(SimulationConfig(size=15, seed=1))
        assert sim.grid.dying_count == 0
        assert 0 < sim.population < 6 ** 3

    def test_mismatched_grid(self):
        with pytest.raises(ConfigurationError):
            Simulation(SimulationConfig(size=5), grid=Grid(4, 10))


class TestExtraction:
    """Test instance extraction through the simulation."""

    def test_idempotent(self):
        sim = Simulation(SimulationConfig(size=10, seed=2))
        sim.tick()
        before = sim.grid.copy_health()

        first = sim.extract_instances()
        second = sim.extract_instances()

        assert first == second
        assert np.array_equal(sim.grid.health, before)

    def test_matches_visible_cells(self):
        sim = Simulation(SimulationConfig(size=10, max_health=3, seed=4))
        for _ in range(4):
            sim.tick()
            instances = sim.extract_instances()
            assert len(instances) == sim.visible_count

    def test_returns_copies(self):
        grid, sim = make_simulation(3, 10, NEVER)
        grid.set_alive(1, 1, 1)
        instances = sim.extract_instances()

        sim.tick()

        assert instances[0].color == (0.9, 0.0, 0.0)


class TestRunControl:
    """Test run helpers, history and statistics."""

    def test_run_until_stable_extinction(self):
        grid, sim = make_simulation(3, 1, NEVER)
        grid.set_alive(1, 1, 1)

        final_gen, reason = sim.run_until_stable(max_generations=100)

        assert reason == "extinction"
        assert final_gen == 2

    def test_run_until_stable_cycle(self):
        grid, sim = make_simulation(6, 10, RuleTable.from_counts(survive=[7], spawn=[]))
        PatternLibrary().get_pattern("Block").apply_to_grid(grid, 2, 2, 2)

        final_gen, reason = sim.run_until_stable(max_generations=100)

        assert reason == "cycle"
        assert sim.cycle_detected
        assert sim.cycle_length == 1
        assert final_gen == 2

    def test_seen_states_hold_fixed_size_digests(self):
        """Cycle detection stores a small digest per generation, not the grid."""
        sim = Simulation(SimulationConfig(size=30, seed=0))
        sim.run(20)

        assert len(sim._seen_states) > 0
        assert all(len(state) == 16 for state in sim._seen_states)
        assert sum(len(state) for state in sim._seen_states) < 30 ** 3

    def test_run_until_stable_max_generations(self):
        grid, sim = make_simulation(6, 10, RuleTable.from_counts(survive=[7], spawn=[]))
        PatternLibrary().get_pattern("Block").apply_to_grid(grid, 2, 2, 2)

        final_gen, reason = sim.run_until_stable(max_generations=1)

        assert reason == "max_generations"
        assert final_gen == 1

    def test_run_until_stable_callback(self):
        grid, sim = make_simulation(3, 2, NEVER)
        grid.set_alive(1, 1, 1)
        seen = []

        sim.run_until_stable(max_generations=10, on_tick=lambda s: seen.append(s.generation))

        assert seen == [1, 2, 3]

    def test_run(self):
        sim = Simulation(SimulationConfig(size=6, seed=0))
        sim.run(4)
        assert sim.generation == 4

    def test_population_history(self):
        grid, sim = make_simulation(3, 10, NEVER)
        grid.set_alive(1, 1, 1)
        sim.clear_cycle_detection()

        sim.tick()
        sim.tick()

        assert sim.population_history == [0, 0, 0]

    def test_reset(self):
        sim = Simulation(SimulationConfig(size=8, seed=5))
        sim.run(3)

        sim.reset(reseed=False)
        assert sim.generation == 0
        assert sim.visible_count == 0
        assert sim.population_history == [0]
        assert not sim.cycle_detected

        sim.reset()
        assert sim.population > 0

    def test_statistics(self):
        sim = Simulation(SimulationConfig(size=8, max_health=4, seed=5))
        sim.tick()
        stats = sim.get_statistics()

        assert stats["generation"] == 1
        assert stats["grid_size"] == (8, 8, 8)
        assert stats["max_health"] == 4
        assert stats["rules"] == "B4,6,8,9/S2,6,9"
        assert stats["visible"] == stats["population"] + stats["dying"]
        assert stats["population_density"] == stats["population"] / 512
        assert "bounding_box" in stats
