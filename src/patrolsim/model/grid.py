"""Grid model: the N x N coverage / threat / uncertainty field.

Cells live in a flat, row-major arena (index ``x * size + y``). A Grid is an
immutable value; observation returns a new Grid that shares every untouched
cell with its predecessor.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterator
from dataclasses import dataclass, replace

GRID_SIZE = 20

# Cells touched by one observation are bounded to +/- this many cells around the
# agent's cell, whatever the sensor radius.
OBSERVATION_WINDOW = 3

UNCERTAINTY_DECAY = 0.1  # uncertainty removed from a cell per observation
MAX_SEEDED_THREAT = 0.3
MAX_SEEDED_UNCERTAINTY = 0.5


def world_to_index(value: float, size: int = GRID_SIZE) -> int:
    """Map a world coordinate to a grid index (may fall outside [0, size))."""
    return math.floor(value + size / 2)


def index_to_world(index: int, size: int = GRID_SIZE) -> float:
    """Map a grid index back to the world coordinate of the cell's corner."""
    return index - size / 2


@dataclass(frozen=True)
class GridCell:
    """One cell of the coverage grid.

    ``x`` and ``y`` are grid indices; ``y`` runs along the world z axis.
    """

    x: int
    y: int
    visited: bool = False
    last_visited: float = 0.0  # simulation seconds
    coverage_value: float = 0.0
    threat_value: float = 0.0  # seeded at generation, never updated
    uncertainty_value: float = 0.0
    is_visible: bool = True  # fog-of-war flag


@dataclass(frozen=True)
class Grid:
    """Immutable N x N arena of GridCells."""

    size: int
    cells: tuple[GridCell, ...]

    def __post_init__(self) -> None:
        if len(self.cells) != self.size * self.size:
            raise ValueError(
                f"Grid of size {self.size} needs {self.size * self.size} cells, "
                f"got {len(self.cells)}"
            )

    def __iter__(self) -> Iterator[GridCell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def cell_at(self, x: int, y: int) -> GridCell | None:
        """Return the cell at grid indices (x, y), or None when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[x * self.size + y]

    def cell_at_world(self, wx: float, wz: float) -> GridCell | None:
        """Return the cell containing world point (wx, wz), or None outside the field."""
        return self.cell_at(world_to_index(wx, self.size), world_to_index(wz, self.size))

    def world_center(self, cell: GridCell) -> tuple[float, float]:
        """World (x, z) the cell index maps back to."""
        return index_to_world(cell.x, self.size), index_to_world(cell.y, self.size)

    def visited_count(self) -> int:
        return sum(1 for cell in self.cells if cell.visited)

    def unvisited(self) -> list[GridCell]:
        """Unvisited cells in row-major order."""
        return [cell for cell in self.cells if not cell.visited]

    def with_cells(self, updated: list[GridCell]) -> Grid:
        """Return a new Grid with the given cells replaced (matched by x, y)."""
        cells = list(self.cells)
        for cell in updated:
            if not self.in_bounds(cell.x, cell.y):
                raise IndexError(f"Cell ({cell.x}, {cell.y}) outside {self.size}x{self.size} grid")
            cells[cell.x * self.size + cell.y] = cell
        return Grid(size=self.size, cells=tuple(cells))

    @classmethod
    def blank(cls, size: int = GRID_SIZE, **values: object) -> Grid:
        """Build a grid whose cells all carry the same field values."""
        cells = tuple(GridCell(x=x, y=y, **values) for x in range(size) for y in range(size))
        return cls(size=size, cells=cells)


def create_grid(
    fog_of_war: bool = False,
    rng: random.Random | None = None,
    size: int = GRID_SIZE,
) -> Grid:
    """Allocate a fresh grid with randomly seeded threat and uncertainty.

    Args:
        fog_of_war: When True every cell starts fully uncertain and hidden.
        rng: Random source; the module-level generator is used when None.
        size: Cells per side.

    Returns:
        A new Grid with no visited cells.
    """
    rng = rng or random.Random()
    cells = []
    for x in range(size):
        for y in range(size):
            threat = rng.random() * MAX_SEEDED_THREAT
            uncertainty = 1.0 if fog_of_war else rng.random() * MAX_SEEDED_UNCERTAINTY
            cells.append(
                GridCell(
                    x=x,
                    y=y,
                    threat_value=threat,
                    uncertainty_value=uncertainty,
                    is_visible=not fog_of_war,
                )
            )
    return Grid(size=size, cells=tuple(cells))


def mark_observed(
    grid: Grid,
    center: tuple[int, int],
    radius: float,
    timestamp: float,
) -> Grid:
    """Record an observation centred on a grid cell.

    Every in-bounds cell within OBSERVATION_WINDOW cells of ``center`` on both
    axes whose offset lies within ``radius`` becomes visited, fully covered and
    visible, and loses UNCERTAINTY_DECAY of its uncertainty. Cells outside the
    window are never touched even if the radius would reach them.

    Args:
        grid: Grid before the observation (left unchanged).
        center: Grid indices (x, y) of the observer.
        radius: Sensor radius in cells.
        timestamp: Simulation time of the observation.

    Returns:
        New Grid with the observed cells updated.
    """
    cx, cy = center
    updated = []
    for dx in range(-OBSERVATION_WINDOW, OBSERVATION_WINDOW + 1):
        for dz in range(-OBSERVATION_WINDOW, OBSERVATION_WINDOW + 1):
            cell = grid.cell_at(cx + dx, cy + dz)
            if cell is None:
                continue
            if math.hypot(dx, dz) > radius:
                continue
            updated.append(
                replace(
                    cell,
                    visited=True,
                    last_visited=timestamp,
                    coverage_value=1.0,
                    uncertainty_value=max(0.0, cell.uncertainty_value - UNCERTAINTY_DECAY),
                    is_visible=True,
                )
            )
    if not updated:
        return grid
    return grid.with_cells(updated)
