"""Tests for the cell transition rule and color derivation."""

import pytest

from voxlife.core.cell import (
    ALIVE,
    ALIVE_COLOR,
    DEAD,
    DYING,
    Cell,
    cell_color,
    classify,
    next_health,
)
from voxlife.core.errors import InvariantViolation
from voxlife.core.rules import DEFAULT_RULES, RuleTable

ALL_TRUE = RuleTable([True] * 27, [True] * 27)
ALL_FALSE = RuleTable([False] * 27, [False] * 27)


class TestClassify:
    """Test the three-way health partition."""

    def test_states(self):
        assert classify(10, 10) == ALIVE
        assert classify(9, 10) == DYING
        assert classify(0, 10) == DYING
        assert classify(-1, 10) == DEAD

    def test_invalid_health(self):
        with pytest.raises(InvariantViolation):
            classify(-2, 10)

        with pytest.raises(InvariantViolation):
            classify(11, 10)


class TestNextHealth:
    """Test each branch of the transition rule."""

    def test_alive_survives(self):
        """Alive cell stays pinned at max health when the survival rule holds."""
        assert next_health(10, 10, 2, DEFAULT_RULES) == 10
        assert next_health(10, 10, 9, DEFAULT_RULES) == 10

    def test_alive_starts_dying(self):
        """Alive cell drops to max_health - 1 when the survival rule fails."""
        assert next_health(10, 10, 0, DEFAULT_RULES) == 9
        assert next_health(10, 10, 3, DEFAULT_RULES) == 9

    def test_dead_spawns(self):
        assert next_health(-1, 10, 4, DEFAULT_RULES) == 10
        assert next_health(-1, 10, 8, DEFAULT_RULES) == 10

    def test_dead_stays_dead(self):
        assert next_health(-1, 10, 5, DEFAULT_RULES) == -1
        assert next_health(-1, 10, 0, DEFAULT_RULES) == -1

    def test_dying_ignores_rules(self):
        """Dying cells decay by one regardless of the rule tables."""
        for rules in (ALL_TRUE, ALL_FALSE, DEFAULT_RULES):
            for count in range(27):
                assert next_health(5, 10, count, rules) == 4
                assert next_health(0, 10, count, rules) == -1

    def test_max_health_one(self):
        """With max health 1 an alive cell is dying for exactly one tick."""
        assert next_health(1, 1, 0, ALL_FALSE) == 0
        assert next_health(0, 1, 0, ALL_FALSE) == -1

    def test_invalid_neighbor_count(self):
        with pytest.raises(InvariantViolation):
            next_health(10, 10, 27, DEFAULT_RULES)

    def test_dying_result_stays_in_range(self):
        """Every reachable result is -1 or within [0, max_health]."""
        for health in range(-1, 11):
            for count in range(27):
                result = next_health(health, 10, count, DEFAULT_RULES)
                assert result == -1 or 0 <= result <= 10


class TestCellColor:
    """Test color derivation."""

    def test_alive_color(self):
        assert cell_color(10, 10) == ALIVE_COLOR

    def test_dying_fades(self):
        assert cell_color(0, 10) == pytest.approx((1 / 12, 1 / 12, 1 / 12))
        assert cell_color(9, 10) == pytest.approx((10 / 12, 10 / 12, 10 / 12))

        brighter = cell_color(8, 10)[0]
        dimmer = cell_color(3, 10)[0]
        assert brighter > dimmer


class TestCell:
    """Test the Cell snapshot."""

    def test_properties(self):
        cell = Cell(coords=(1, 2, 3), position=(0.0, 1.0, 2.0), health=4, neighbor_count=6, max_health=10)
        assert cell.state == DYING
        assert cell.is_dying
        assert cell.is_visible
        assert not cell.is_alive
        assert not cell.is_dead
        assert cell.color == cell_color(4, 10)
        assert cell.next_health(DEFAULT_RULES) == 3

    def test_alive_cell(self):
        cell = Cell(coords=(0, 0, 0), position=(0.0, 0.0, 0.0), health=10, neighbor_count=6, max_health=10)
        assert cell.is_alive
        assert cell.color == ALIVE_COLOR
        assert cell.next_health(DEFAULT_RULES) == 10

    def test_frozen(self):
        cell = Cell(coords=(0, 0, 0), position=(0.0, 0.0, 0.0), health=-1, neighbor_count=0, max_health=10)
        assert cell.is_dead
        assert not cell.is_visible
        with pytest.raises(AttributeError):
            cell.health = 10
