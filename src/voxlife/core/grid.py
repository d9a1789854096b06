"""Grid data structure for 3D cellular automata."""

from itertools import product
from typing import Iterator, List, Optional, Tuple
import numpy as np
import torch
import torch.nn.functional as F

from .cell import DEAD_HEALTH, Cell
from .errors import ConfigurationError, InvariantViolation
from .rules import MAX_NEIGHBORS

# The 26 offsets of the Moore neighborhood, center excluded
NEIGHBOR_OFFSETS: List[Tuple[int, int, int]] = [
    offset for offset in product((-1, 0, 1), repeat=3) if offset != (0, 0, 0)
]


class Grid:
    """Represents a cubic N x N x N grid of cells with decaying health.

    Health and neighbor counts live in two C-ordered numpy arrays indexed
    ``[x, y, z]``, so the flat position of a cell is
    ``z + y * N + x * N * N``. Edges are bounded; there is no wraparound.
    """

    def __init__(self, size: int, max_health: int) -> None:
        """Initialize a new grid with every cell dead.

        Args:
            size: Number of cells along each axis
            max_health: Health of a fully alive cell

        Raises:
            ConfigurationError: If size is not positive or max_health is negative
        """
        if size <= 0:
            raise ConfigurationError(f"Grid size must be positive, got {size}")
        if max_health < 0:
            raise ConfigurationError(f"Max health must be non-negative, got {max_health}")

        self.size = size
        self.max_health = max_health
        self._health = np.full((size, size, size), DEAD_HEALTH, dtype=np.int32)
        self._neighbors = np.zeros((size, size, size), dtype=np.int32)

        # Render positions, centred on the origin
        coords = np.indices((size, size, size), dtype=np.float32)
        self._positions = np.ascontiguousarray(np.moveaxis(coords, 0, -1) - size * 0.5)

        # Ticks run on one thread
        torch.set_num_threads(1)

        self._torch_input = torch.zeros(1, 1, size, size, size, dtype=torch.float32)
        kernel = torch.ones(3, 3, 3, dtype=torch.float32)
        kernel[1, 1, 1] = 0
        self._torch_kernel = kernel.unsqueeze(0).unsqueeze(0)

    @property
    def health(self) -> np.ndarray:
        """Get the health array, shape (N, N, N)."""
        return self._health

    @property
    def neighbor_counts(self) -> np.ndarray:
        """Get the neighbor count array from the last refresh."""
        return self._neighbors

    @property
    def positions(self) -> np.ndarray:
        """Get render positions, shape (N, N, N, 3)."""
        return self._positions

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Get grid dimensions as (N, N, N)."""
        return (self.size, self.size, self.size)

    @property
    def cell_count(self) -> int:
        return self._health.size

    def in_bounds(self, x: int, y: int, z: int) -> bool:
        n = self.size
        return 0 <= x < n and 0 <= y < n and 0 <= z < n

    def index(self, x: int, y: int, z: int) -> int:
        """Linear index of a coordinate.

        Raises:
            InvariantViolation: If the coordinate is out of bounds
        """
        self._check_bounds(x, y, z)
        return z + y * self.size + x * self.size * self.size

    def coords(self, index: int) -> Tuple[int, int, int]:
        """Inverse of index()."""
        if not 0 <= index < self.cell_count:
            raise InvariantViolation(f"Index {index} out of bounds")
        x, rest = divmod(index, self.size * self.size)
        y, z = divmod(rest, self.size)
        return (x, y, z)

    def get_health(self, x: int, y: int, z: int) -> int:
        self._check_bounds(x, y, z)
        return int(self._health[x, y, z])

    def set_health(self, x: int, y: int, z: int, health: int) -> None:
        """Set the health of a cell.

        Raises:
            InvariantViolation: If the coordinate is out of bounds or the
                health is not an integer in {-1} ∪ [0, max_health]
        """
        self._check_bounds(x, y, z)
        if isinstance(health, bool) or not isinstance(health, (int, np.integer)):
            raise InvariantViolation(f"Health must be an integer, got {health!r}")
        if health != DEAD_HEALTH and not 0 <= health <= self.max_health:
            raise InvariantViolation(
                f"Health {health} outside {{-1}} ∪ [0, {self.max_health}]"
            )
        self._health[x, y, z] = health

    def set_alive(self, x: int, y: int, z: int, alive: bool = True) -> None:
        """Mark a cell fully alive, or dead when alive is False."""
        self.set_health(x, y, z, self.max_health if alive else DEAD_HEALTH)

    def is_alive(self, x: int, y: int, z: int) -> bool:
        return self.get_health(x, y, z) == self.max_health

    def get_cell(self, x: int, y: int, z: int) -> Cell:
        """Get a snapshot of the cell at a coordinate."""
        self._check_bounds(x, y, z)
        position = self._positions[x, y, z]
        return Cell(
            coords=(x, y, z),
            position=(float(position[0]), float(position[1]), float(position[2])),
            health=int(self._health[x, y, z]),
            neighbor_count=int(self._neighbors[x, y, z]),
            max_health=self.max_health,
        )

    def iter_cells(self) -> Iterator[Cell]:
        """Yield every cell in linear index order."""
        for x, y, z in product(range(self.size), repeat=3):
            yield self.get_cell(x, y, z)

    def clear(self) -> None:
        """Set every cell dead and zero all neighbor counts."""
        self._health.fill(DEAD_HEALTH)
        self._neighbors.fill(0)

    def copy_health(self) -> np.ndarray:
        """Return a copy of the health array."""
        return self._health.copy()

    @property
    def alive_mask(self) -> np.ndarray:
        return self._health == self.max_health

    @property
    def visible_mask(self) -> np.ndarray:
        return self._health >= 0

    @property
    def alive_count(self) -> int:
        """Get the number of fully alive cells."""
        return int(np.count_nonzero(self.alive_mask))

    @property
    def dying_count(self) -> int:
        """Get the number of dying cells."""
        return int(np.count_nonzero((self._health >= 0) & (self._health < self.max_health)))

    @property
    def visible_count(self) -> int:
        """Get the number of alive or dying cells."""
        return int(np.count_nonzero(self.visible_mask))

    @property
    def population(self) -> int:
        """Get the number of living cells."""
        return self.alive_count

    def neighbor_count(self, x: int, y: int, z: int) -> int:
        """Count alive neighbors of a cell.

        Offsets that leave the grid are skipped.

        Args:
            x: X coordinate
            y: Y coordinate
            z: Z coordinate

        Returns:
            Number of alive neighbors (0-26)
        """
        self._check_bounds(x, y, z)
        count = 0
        for dx, dy, dz in NEIGHBOR_OFFSETS:
            nx, ny, nz = x + dx, y + dy, z + dz
            if self.in_bounds(nx, ny, nz) and self._health[nx, ny, nz] == self.max_health:
                count += 1
        return count

    def count_all_neighbors(self) -> np.ndarray:
        """Count alive neighbors for all cells using a 3D convolution.

        Returns:
            Array of neighbor counts, shape (N, N, N)
        """
        self._torch_input[0, 0] = torch.from_numpy(self.alive_mask.astype(np.float32))

        # Zero padding keeps the edges bounded
        neighbors = F.conv3d(self._torch_input, self._torch_kernel, padding=1)

        counts = neighbors[0, 0].round().to(torch.int32).numpy()
        if counts.size and (counts.min() < 0 or counts.max() > MAX_NEIGHBORS):
            raise InvariantViolation("Neighbor count outside 0..26")
        return counts

    def refresh_neighbor_counts(self) -> None:
        """Recompute every neighbor count from the current health values.

        Must run before any health is updated for the tick, so every count
        reflects the previous tick only.
        """
        self._neighbors[:] = self.count_all_neighbors()

    def get_bounding_box(self) -> Optional[Tuple[int, int, int, int, int, int]]:
        """Get bounding box of visible cells.

        Returns:
            Tuple of (min_x, min_y, min_z, max_x, max_y, max_z) or None if
            no cell is visible
        """
        xs, ys, zs = np.where(self.visible_mask)
        if len(xs) == 0:
            return None

        return (
            int(xs.min()), int(ys.min()), int(zs.min()),
            int(xs.max()), int(ys.max()), int(zs.max()),
        )

    def _check_bounds(self, x: int, y: int, z: int) -> None:
        if not self.in_bounds(x, y, z):
            raise InvariantViolation(f"Coordinates ({x}, {y}, {z}) out of bounds")

    def __eq__(self, other: object) -> bool:
        """Check if two grids hold the same state."""
        if not isinstance(other, Grid):
            return False
        return (
            self.size == other.size
            and self.max_health == other.max_health
            and np.array_equal(self._health, other._health)
        )
