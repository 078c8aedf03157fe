"""
Blue-noise point generation for the terrain mesh.

Points are produced by dart throwing around previously accepted points:
each anchor is probed at a fixed number of angles on the circle of radius
``min_spacing`` and the first candidate that lies inside the domain and keeps
clear of every accepted point is emitted. Generation stops when no anchor can
yield another point.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

logger = structlog.get_logger()

SEARCH_STEP_COUNT = 100


class Point(NamedTuple):
    """A 2D location."""
    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    """Half-open interval ``[min_inc, max_exc)`` along one axis."""
    min_inc: float
    max_exc: float

    def __post_init__(self):
        if not (math.isfinite(self.min_inc) and math.isfinite(self.max_exc)):
            raise ValueError(f"Bounds must be finite, got [{self.min_inc}, {self.max_exc})")
        if self.min_inc >= self.max_exc:
            raise ValueError(
                f"Bounds minimum {self.min_inc} must be below maximum {self.max_exc}"
            )

    def contains(self, value: float) -> bool:
        return self.min_inc <= value < self.max_exc

    @property
    def midpoint(self) -> float:
        return (self.min_inc + self.max_exc) / 2


class ProximityIndex:
    """
    Uniform bucket grid answering "is any point strictly within radius?".

    Buckets are squares of side ``cell_size``; a query only visits the buckets
    overlapping the query circle's bounding box.
    """

    def __init__(self, cell_size: float):
        self.cell_size = cell_size
        self._buckets: Dict[Tuple[int, int], List[Point]] = defaultdict(list)
        self._count = 0

    def _key(self, x: float, y: float) -> Tuple[int, int]:
        return int(math.floor(x / self.cell_size)), int(math.floor(y / self.cell_size))

    def add(self, point: Point) -> None:
        self._buckets[self._key(point.x, point.y)].append(point)
        self._count += 1

    def any_within(self, point: Point, radius_sq: float) -> bool:
        radius = math.sqrt(radius_sq)
        min_kx, min_ky = self._key(point.x - radius, point.y - radius)
        max_kx, max_ky = self._key(point.x + radius, point.y + radius)

        for kx in range(min_kx, max_kx + 1):
            for ky in range(min_ky, max_ky + 1):
                bucket = self._buckets.get((kx, ky))
                if not bucket:
                    continue
                for other in bucket:
                    dx = other.x - point.x
                    dy = other.y - point.y
                    if dx * dx + dy * dy < radius_sq:
                        return True
        return False

    def __len__(self) -> int:
        return self._count


class PointGenerator:
    """
    Lazy, single-pass iterator of points at least ``min_spacing`` apart.

    Args:
        x_bounds: Horizontal extent of the domain
        y_bounds: Vertical extent of the domain
        min_spacing: Minimum distance between any two emitted points
        rng: Random generator for probe angles and directions
    """

    def __init__(self, x_bounds: Bounds, y_bounds: Bounds, min_spacing: float,
                 rng: Optional[np.random.Generator] = None):
        if not math.isfinite(min_spacing) or min_spacing <= 0:
            raise ValueError(f"min_spacing must be positive and finite, got {min_spacing}")

        self.x_bounds = x_bounds
        self.y_bounds = y_bounds
        self.min_spacing = min_spacing
        self.min_spacing_sq = min_spacing * min_spacing
        self.rng = rng if rng is not None else np.random.default_rng()

        self._queue: List[Point] = []
        self._index = ProximityIndex(min_spacing)
        self._started = False
        self._exhausted = False

    def __iter__(self) -> Iterator[Point]:
        return self

    def __next__(self) -> Point:
        if not self._started:
            return self._initial_point()

        point = self._next_point()
        if point is None:
            if not self._exhausted:
                self._exhausted = True
                logger.info("Point generation exhausted", points=len(self._index),
                            min_spacing=self.min_spacing)
            raise StopIteration
        return point

    @property
    def emitted(self) -> int:
        """Number of points produced so far."""
        return len(self._index)

    def _initial_point(self) -> Point:
        self._started = True
        point = Point(self.x_bounds.midpoint, self.y_bounds.midpoint)
        self._queue.append(point)
        self._index.add(point)
        return point

    def _next_point(self) -> Optional[Point]:
        while self._queue:
            anchor = self._queue.pop()
            neighbor = self._neighbor_point(anchor)
            if neighbor is not None:
                # The anchor may still have room for more neighbours
                self._queue.append(anchor)
                self._queue.append(neighbor)
                self._index.add(neighbor)
                return neighbor
        return None

    def _neighbor_point(self, anchor: Point) -> Optional[Point]:
        base_angle = self.rng.random() * math.tau
        step_dir = 1.0 if self.rng.random() < 0.5 else -1.0
        step_angle = step_dir * math.tau / SEARCH_STEP_COUNT

        for step in range(SEARCH_STEP_COUNT):
            angle = base_angle + step_angle * step
            candidate = Point(
                anchor.x + math.cos(angle) * self.min_spacing,
                anchor.y + math.sin(angle) * self.min_spacing,
            )
            if self._in_bounds(candidate) and self._has_space(candidate):
                return candidate
        return None

    def _in_bounds(self, point: Point) -> bool:
        return self.x_bounds.contains(point.x) and self.y_bounds.contains(point.y)

    def _has_space(self, point: Point) -> bool:
        return not self._index.any_within(point, self.min_spacing_sq)


def generate_points(width: float, height: float, min_spacing: float,
                    seed: Optional[int] = None) -> Iterator[Point]:
    """
    Generate blue-noise points over ``[0, width) x [0, height)``.

    Args:
        width: Domain width
        height: Domain height
        min_spacing: Minimum distance between points
        seed: Optional seed for reproducible point sets

    Returns:
        Point iterator
    """
    return PointGenerator(
        Bounds(0.0, float(width)),
        Bounds(0.0, float(height)),
        min_spacing,
        rng=np.random.default_rng(seed),
    )
