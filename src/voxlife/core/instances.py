"""Projection from simulation state to renderable instances."""

from dataclasses import dataclass
from typing import List, Sequence, Tuple
import numpy as np

from .cell import ALIVE_COLOR
from .grid import Grid

# 4x4 model matrix followed by an RGB color
RAW_INSTANCE_WIDTH = 19


@dataclass(frozen=True)
class Instance:
    """Position and color of one visible cell."""

    position: Tuple[float, float, float]
    color: Tuple[float, float, float]

    def model_matrix(self) -> np.ndarray:
        """Translation matrix for this instance, column-major (4, 4)."""
        matrix = np.identity(4, dtype=np.float32)
        matrix[3, :3] = self.position
        return matrix

    def to_raw(self) -> np.ndarray:
        """Flatten into the per-instance layout of an instance buffer."""
        return np.concatenate(
            [self.model_matrix().reshape(-1), np.asarray(self.color, dtype=np.float32)]
        )


def extract_instances(grid: Grid) -> List[Instance]:
    """Build instance records for every visible cell.

    Cells with negative health are skipped. Records come out in linear
    index order, but their count and order change from tick to tick.

    Args:
        grid: Grid to read; it is not modified

    Returns:
        List of Instance records, one per visible cell
    """
    health = grid.health.reshape(-1)
    positions = grid.positions.reshape(-1, 3)
    visible = np.flatnonzero(health >= 0)

    colors = instance_colors(health[visible], grid.max_health)
    return [
        Instance(
            position=(float(p[0]), float(p[1]), float(p[2])),
            color=(float(c[0]), float(c[1]), float(c[2])),
        )
        for p, c in zip(positions[visible], colors)
    ]


def instance_colors(health: np.ndarray, max_health: int) -> np.ndarray:
    """Vectorised cell colors for an array of visible health values.

    Returns:
        Array of shape (len(health), 3)
    """
    intensity = (1.0 + health.astype(np.float64)) / (max_health + 2.0)
    colors = np.repeat(intensity[:, None], 3, axis=1)
    colors[health == max_health] = ALIVE_COLOR
    return colors


def instances_to_array(instances: Sequence[Instance]) -> np.ndarray:
    """Pack instances into a float32 array of shape (k, 19)."""
    if not instances:
        return np.zeros((0, RAW_INSTANCE_WIDTH), dtype=np.float32)
    return np.stack([instance.to_raw() for instance in instances]).astype(np.float32)
