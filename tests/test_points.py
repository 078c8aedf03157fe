"""Tests for blue-noise point generation."""

import math

import numpy as np
import pytest
from scipy.spatial import cKDTree

from py_erosion.core.points import (
    Bounds, Point, PointGenerator, ProximityIndex, generate_points
)


class TestBounds:
    """Test axis bounds."""

    def test_half_open_interval(self):
        """Minimum is included, maximum is not."""
        bounds = Bounds(0.0, 10.0)
        assert bounds.contains(0.0)
        assert bounds.contains(9.999)
        assert not bounds.contains(10.0)
        assert not bounds.contains(-0.001)

    @pytest.mark.parametrize("min_inc,max_exc", [(5.0, 5.0), (6.0, 5.0), (0.0, math.inf)])
    def test_invalid_bounds_rejected(self, min_inc, max_exc):
        with pytest.raises(ValueError):
            Bounds(min_inc, max_exc)


class TestProximityIndex:
    """Test the bucketed proximity index."""

    def test_boundary_distance_is_not_a_match(self):
        """Points exactly at the radius do not count as within it."""
        index = ProximityIndex(1.0)
        index.add(Point(0.0, 0.0))

        assert not index.any_within(Point(1.0, 0.0), 1.0)
        assert index.any_within(Point(0.999, 0.0), 1.0)

    def test_neighbouring_buckets_are_searched(self):
        index = ProximityIndex(1.0)
        index.add(Point(0.95, 0.95))

        assert index.any_within(Point(1.05, 1.05), 0.25)
        assert not index.any_within(Point(3.0, 3.0), 0.25)
        assert len(index) == 1


class TestPointGenerator:
    """Test dart-throwing point generation."""

    @pytest.fixture
    def points(self):
        return list(generate_points(20, 15, 1.0, seed=42))

    def test_first_point_is_centre(self):
        generator = PointGenerator(Bounds(2.0, 10.0), Bounds(-4.0, 0.0), 1.0,
                                   rng=np.random.default_rng(0))
        assert next(generator) == Point(6.0, -2.0)

    def test_minimum_spacing(self, points):
        """No two points are closer than the minimum spacing."""
        tree = cKDTree(np.array(points))
        assert tree.query_pairs(r=1.0 - 1e-9) == set()

    def test_points_within_bounds(self, points):
        coords = np.array(points)
        assert np.all(coords[:, 0] >= 0) and np.all(coords[:, 0] < 20)
        assert np.all(coords[:, 1] >= 0) and np.all(coords[:, 1] < 15)

    def test_domain_is_saturated(self, points):
        """Generation runs until the domain is densely covered."""
        assert len(points) > 150

    def test_same_seed_reproduces_points(self):
        first = list(generate_points(8, 8, 1.0, seed=7))
        second = list(generate_points(8, 8, 1.0, seed=7))
        assert first == second

    def test_generator_is_not_restartable(self):
        generator = generate_points(4, 4, 1.0, seed=1)
        emitted = list(generator)

        assert generator.emitted == len(emitted)
        assert list(generator) == []
        with pytest.raises(StopIteration):
            next(generator)

    def test_spacing_larger_than_domain_yields_single_point(self):
        points = list(generate_points(1.0, 1.0, 5.0, seed=3))
        assert points == [Point(0.5, 0.5)]

    @pytest.mark.parametrize("spacing", [0.0, -1.0, math.nan])
    def test_invalid_spacing_rejected(self, spacing):
        with pytest.raises(ValueError):
            PointGenerator(Bounds(0, 1), Bounds(0, 1), spacing)
