"""Survival and spawn rule tables for 3D Life-like automata."""

from typing import Iterable, List, Sequence, Set, Tuple
import re

import torch

from .errors import ConfigurationError, InvariantViolation

# Neighbor counts 0..26 inclusive for a 26-cell Moore neighborhood
TABLE_SIZE = 27
MAX_NEIGHBORS = TABLE_SIZE - 1

_RULE_PART = re.compile(r"^([BS])([0-9,\-]*)$", re.IGNORECASE)


class RuleTable:
    """Fixed lookup tables mapping a neighbor count to a rule decision.

    ``survives`` is consulted for fully alive cells, ``spawns`` for dead
    cells. Both tables have one entry per neighbor count 0..26.
    """

    def __init__(self, survives: Sequence[bool], spawns: Sequence[bool]) -> None:
        """Initialize a rule table.

        Args:
            survives: 27 booleans, True where an alive cell stays alive
            spawns: 27 booleans, True where a dead cell becomes alive

        Raises:
            ConfigurationError: If either table does not have 27 entries
        """
        if len(survives) != TABLE_SIZE:
            raise ConfigurationError(
                f"Survival table must have {TABLE_SIZE} entries, got {len(survives)}"
            )
        if len(spawns) != TABLE_SIZE:
            raise ConfigurationError(
                f"Spawn table must have {TABLE_SIZE} entries, got {len(spawns)}"
            )

        self._survives: Tuple[bool, ...] = tuple(bool(v) for v in survives)
        self._spawns: Tuple[bool, ...] = tuple(bool(v) for v in spawns)

    @property
    def survival_table(self) -> Tuple[bool, ...]:
        """The survival table as a tuple."""
        return self._survives

    @property
    def spawn_table(self) -> Tuple[bool, ...]:
        """The spawn table as a tuple."""
        return self._spawns

    def survives(self, neighbor_count: int) -> bool:
        """Whether an alive cell with this many alive neighbors stays alive.

        Raises:
            InvariantViolation: If neighbor_count is outside 0..26
        """
        _check_count(neighbor_count)
        return self._survives[neighbor_count]

    def spawns(self, neighbor_count: int) -> bool:
        """Whether a dead cell with this many alive neighbors becomes alive.

        Raises:
            InvariantViolation: If neighbor_count is outside 0..26
        """
        _check_count(neighbor_count)
        return self._spawns[neighbor_count]

    def survival_counts(self) -> List[int]:
        """Neighbor counts for which alive cells survive."""
        return [n for n, keep in enumerate(self._survives) if keep]

    def spawn_counts(self) -> List[int]:
        """Neighbor counts for which dead cells spawn."""
        return [n for n, born in enumerate(self._spawns) if born]

    def as_tensors(self) -> Tuple[torch.Tensor, torch.Tensor]:
        """Return (survives, spawns) as boolean tensors indexable by count."""
        return (
            torch.tensor(self._survives, dtype=torch.bool),
            torch.tensor(self._spawns, dtype=torch.bool),
        )

    @classmethod
    def from_counts(cls, survive: Iterable[int], spawn: Iterable[int]) -> "RuleTable":
        """Build a rule table from the sets of counts that trigger each rule.

        Args:
            survive: Neighbor counts for which alive cells survive
            spawn: Neighbor counts for which dead cells spawn

        Raises:
            ConfigurationError: If any count is outside 0..26
        """
        survive_set = _validate_counts(survive, "survival")
        spawn_set = _validate_counts(spawn, "spawn")
        return cls(
            [n in survive_set for n in range(TABLE_SIZE)],
            [n in spawn_set for n in range(TABLE_SIZE)],
        )

    @classmethod
    def from_string(cls, notation: str) -> "RuleTable":
        """Parse B/S rule notation such as ``"B4,6,8,9/S2,6,9"``.

        Parts may appear in either order. Counts are comma separated and
        may use inclusive ranges (``"S5-7"``). An empty part means the
        rule never fires.

        Raises:
            ConfigurationError: If the notation is malformed
        """
        parts = [part.strip() for part in notation.strip().split("/")]
        if len(parts) != 2:
            raise ConfigurationError(f"Rule '{notation}' must have the form B.../S...")

        counts = {}
        for part in parts:
            match = _RULE_PART.match(part)
            if not match:
                raise ConfigurationError(f"Invalid rule part '{part}' in '{notation}'")
            key = match.group(1).upper()
            if key in counts:
                raise ConfigurationError(f"Rule '{notation}' repeats the '{key}' part")
            counts[key] = _parse_count_list(match.group(2), notation)

        if set(counts) != {"B", "S"}:
            raise ConfigurationError(f"Rule '{notation}' needs both a B and an S part")

        return cls.from_counts(survive=counts["S"], spawn=counts["B"])

    @classmethod
    def default(cls) -> "RuleTable":
        """The reference rule: spawn on 4, 6, 8, 9; survive on 2, 6, 9."""
        return DEFAULT_RULES

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleTable):
            return False
        return self._survives == other._survives and self._spawns == other._spawns

    def __hash__(self) -> int:
        return hash((self._survives, self._spawns))

    def __str__(self) -> str:
        born = ",".join(str(n) for n in self.spawn_counts())
        keep = ",".join(str(n) for n in self.survival_counts())
        return f"B{born}/S{keep}"

    def __repr__(self) -> str:
        return f"RuleTable('{self}')"


def _check_count(neighbor_count: int) -> None:
    if not 0 <= neighbor_count <= MAX_NEIGHBORS:
        raise InvariantViolation(
            f"Neighbor count {neighbor_count} outside 0..{MAX_NEIGHBORS}"
        )


def _validate_counts(counts: Iterable[int], label: str) -> Set[int]:
    result = set()
    for n in counts:
        if not 0 <= int(n) <= MAX_NEIGHBORS:
            raise ConfigurationError(
                f"{label.capitalize()} count {n} outside 0..{MAX_NEIGHBORS}"
            )
        result.add(int(n))
    return result


def _parse_count_list(text: str, notation: str) -> List[int]:
    counts: List[int] = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            low, sep, high = item.partition("-")
            low = int(low)
            high = int(high) if sep else low
        except ValueError:
            raise ConfigurationError(f"Invalid count '{item}' in rule '{notation}'")
        if low > high:
            raise ConfigurationError(f"Reversed range '{item}' in rule '{notation}'")
        counts.extend(range(low, high + 1))
    return counts


DEFAULT_RULES = RuleTable(
    survives=[
        False, False, True, False, False, False, True, False, False, True, False, False, False, False,
        False, False, False, False, False, False, False, False, False, False, False, False, False,
    ],
    spawns=[
        False, False, False, False, True, False, True, False, True, True, False, False, False, False,
        False, False, False, False, False, False, False, False, False, False, False, False, False,
    ],
)
