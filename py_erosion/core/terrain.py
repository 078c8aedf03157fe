"""
Terrain mesh: cells, their triangulation-derived neighbour graph and the
additive deltas the simulation applies to them.

Cells live in a flat list and are addressed by position. Neighbour edges and
deltas refer to cells by that index only.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, NamedTuple

import numpy as np
import structlog
from scipy.spatial import Delaunay, QhullError

from .points import Point

logger = structlog.get_logger()


class TerrainConstructionError(ValueError):
    """Raised when a point set cannot be turned into a mesh."""


class NeighborData(NamedTuple):
    """Directed edge cached on the owning cell."""
    index: int
    distance: float


@dataclass
class Cell:
    """A mesh vertex carrying terrain height and standing water depth."""
    location: Point
    height: float
    depth: float
    neighbor_data: List[NeighborData] = field(default_factory=list)

    @property
    def x(self) -> float:
        return self.location.x

    @property
    def y(self) -> float:
        return self.location.y

    def add_neighbor(self, index: int, location: Point) -> None:
        """Record an edge to ``index`` unless one already exists."""
        if any(nd.index == index for nd in self.neighbor_data):
            return
        distance = math.hypot(self.x - location.x, self.y - location.y)
        self.neighbor_data.append(NeighborData(index, distance))


@dataclass
class TerrainDelta:
    """Additive update for a single cell."""
    cell_index: int
    height_delta: float = 0.0
    depth_delta: float = 0.0

    def scaled(self, factor: float) -> "TerrainDelta":
        return TerrainDelta(self.cell_index, self.height_delta * factor,
                            self.depth_delta * factor)


class Terrain:
    """Ordered, fixed-size collection of linked cells."""

    def __init__(self, cells: List[Cell]):
        self._cells = cells

    @classmethod
    def generate(cls, points: Iterable[Point],
                 height_at: Callable[[Point], float],
                 depth_at: Callable[[Point], float]) -> "Terrain":
        """
        Build a terrain from a finite point sequence.

        Each point becomes one cell whose initial height and depth come from
        ``height_at`` and ``depth_at``. Cells are then linked along the edges
        of a Delaunay triangulation of their locations.

        Args:
            points: Finite sequence of cell locations
            height_at: Initial terrain height for a location
            depth_at: Initial water depth for a location

        Returns:
            Fully linked Terrain

        Raises:
            TerrainConstructionError: If the points cannot be triangulated
        """
        cells = []
        for point in points:
            point = Point(*point)
            cells.append(Cell(point, height_at(point), depth_at(point)))

        triangles = triangulate([cell.location for cell in cells])
        link_cells(cells, triangles)

        edges = sum(len(cell.neighbor_data) for cell in cells)
        logger.info("Terrain generated", cells=len(cells),
                    triangles=len(triangles), edges=edges // 2)
        return cls(cells)

    def apply_delta(self, delta: TerrainDelta) -> None:
        cell = self._cells[delta.cell_index]
        cell.height += delta.height_delta
        cell.depth += delta.depth_delta

    def apply_deltas(self, deltas: Iterable[TerrainDelta]) -> None:
        for delta in deltas:
            self.apply_delta(delta)

    def get_cell(self, index: int) -> Cell:
        return self._cells[index]

    def __getitem__(self, index: int) -> Cell:
        return self._cells[index]

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def heights(self) -> np.ndarray:
        """Snapshot of all cell heights."""
        return np.array([cell.height for cell in self._cells], dtype=np.float64)

    def depths(self) -> np.ndarray:
        """Snapshot of all cell water depths."""
        return np.array([cell.depth for cell in self._cells], dtype=np.float64)


def triangulate(locations: List[Point]) -> np.ndarray:
    """
    Delaunay-triangulate cell locations.

    Returns:
        (n_triangles, 3) array of cell indices

    Raises:
        TerrainConstructionError: For fewer than 3 points or a degenerate set
    """
    if len(locations) < 3:
        raise TerrainConstructionError(
            f"At least 3 points are required to build a mesh, got {len(locations)}"
        )

    try:
        triangulation = Delaunay(np.asarray(locations, dtype=np.float64))
    except QhullError as e:
        raise TerrainConstructionError(f"Point set is degenerate: {e}") from e

    return triangulation.simplices


def link_cells(cells: List[Cell], triangles: np.ndarray) -> None:
    """
    Connect every ordered pair of distinct vertices of each triangle.

    Visiting both orders of every pair keeps the graph symmetric; duplicate
    edges from triangles sharing a side are skipped by ``Cell.add_neighbor``.
    """
    for triangle in triangles:
        for cell_index in triangle:
            for neighbor_index in triangle:
                if cell_index != neighbor_index:
                    cells[cell_index].add_neighbor(
                        int(neighbor_index), cells[neighbor_index].location
                    )
