"""Initial terrain height and water depth functions."""

from typing import Callable

from .points import Point


def dome_height(width: float, height: float, max_z: float) -> Callable[[Point], float]:
    """
    Height field peaking at ``max_z`` in the centre and falling to zero at
    every edge of the ``width`` x ``height`` domain.
    """
    def height_at(p: Point) -> float:
        x_term = -2.0 * p.x / width + 1.0
        y_term = -2.0 * p.y / height + 1.0
        return max_z * (-x_term * x_term + 1.0) * (-y_term * y_term + 1.0)

    return height_at


def sea_depth(height_at: Callable[[Point], float]) -> Callable[[Point], float]:
    """Fill every location below height 1.0 with water up to that level."""
    def depth_at(p: Point) -> float:
        z = height_at(p)
        return 1.0 - z if z < 1.0 else 0.0

    return depth_at
