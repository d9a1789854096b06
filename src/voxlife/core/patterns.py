"""Named 3D seed shapes for starting a simulation by hand."""

from typing import Dict, List, Tuple, Optional, Any
from itertools import product

from .errors import InvariantViolation
from .grid import Grid

Coord = Tuple[int, int, int]


class Pattern:
    """A set of cells to bring alive, relative to an origin."""

    def __init__(self, name: str, cells: List[Coord], description: str = "") -> None:
        """Initialize a pattern.

        Args:
            name: Pattern name
            cells: List of (x, y, z) offsets for alive cells
            description: Optional description
        """
        self.name = name
        self.cells = cells
        self.description = description

    def apply_to_grid(self, grid: Grid, offset_x: int = 0, offset_y: int = 0, offset_z: int = 0) -> None:
        """Clear a grid and bring this pattern's cells alive.

        Cells that land outside the grid are skipped.
        """
        grid.clear()
        for x, y, z in self.cells:
            try:
                grid.set_alive(x + offset_x, y + offset_y, z + offset_z)
            except InvariantViolation:
                pass

    def apply_centered(self, grid: Grid) -> None:
        """Apply this pattern to the middle of a grid."""
        width, height, depth = self.get_size()
        min_x, min_y, min_z, _, _, _ = self.get_bounding_box()
        self.apply_to_grid(
            grid,
            (grid.size - width) // 2 - min_x,
            (grid.size - height) // 2 - min_y,
            (grid.size - depth) // 2 - min_z,
        )

    def get_bounding_box(self) -> Tuple[int, int, int, int, int, int]:
        """Get bounding box as (min_x, min_y, min_z, max_x, max_y, max_z)."""
        if not self.cells:
            return (0, 0, 0, 0, 0, 0)

        xs, ys, zs = zip(*self.cells)
        return (min(xs), min(ys), min(zs), max(xs), max(ys), max(zs))

    def get_size(self) -> Tuple[int, int, int]:
        """Get pattern extent along each axis."""
        min_x, min_y, min_z, max_x, max_y, max_z = self.get_bounding_box()
        return (max_x - min_x + 1, max_y - min_y + 1, max_z - min_z + 1)

    @property
    def population(self) -> int:
        return len(set(self.cells))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cells": [list(cell) for cell in self.cells],
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pattern":
        cells = [tuple(cell) for cell in data["cells"]]
        return cls(name=data["name"], cells=cells, description=data.get("description", ""))


def _box(width: int, height: int, depth: int) -> List[Coord]:
    return list(product(range(width), range(height), range(depth)))


class PatternLibrary:
    """Manages a collection of patterns."""

    def __init__(self) -> None:
        self._patterns: Dict[str, Pattern] = {}
        self._load_builtin_patterns()

    def _load_builtin_patterns(self) -> None:
        """Load built-in patterns."""
        self.add_pattern(Pattern("Single", [(0, 0, 0)], "One isolated alive cell"))
        self.add_pattern(Pattern("Pair", [(0, 0, 0), (1, 0, 0)], "Two face-adjacent cells"))
        self.add_pattern(Pattern("Block", _box(2, 2, 2), "2x2x2 cube, 7 neighbors per cell"))
        self.add_pattern(Pattern("Cube", _box(3, 3, 3), "Solid 3x3x3 cube"))
        self.add_pattern(
            Pattern(
                "Cross",
                [(1, 1, 1), (0, 1, 1), (2, 1, 1), (1, 0, 1), (1, 2, 1), (1, 1, 0), (1, 1, 2)],
                "Center cell with its six face neighbors",
            )
        )
        self.add_pattern(
            Pattern(
                "Shell",
                [cell for cell in _box(3, 3, 3) if cell != (1, 1, 1)],
                "Hollow 3x3x3 cube",
            )
        )

    def add_pattern(self, pattern: Pattern) -> None:
        self._patterns[pattern.name] = pattern

    def get_pattern(self, name: str) -> Optional[Pattern]:
        """Get a pattern by name, or None if not found."""
        return self._patterns.get(name)

    def list_patterns(self) -> List[str]:
        return list(self._patterns.keys())
