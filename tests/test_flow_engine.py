"""Tests for the simulation engine."""

import pytest

from py_erosion.core.default_flow import DefaultFlow
from py_erosion.core.flow import Flow, FlowEngine
from py_erosion.core.points import Point
from py_erosion.core.terrain import Terrain, TerrainDelta


class FixedFlow(Flow):
    """Returns the same deltas every step."""

    def __init__(self, deltas):
        self.deltas = deltas
        self.calls = 0

    def flow(self, terrain):
        self.calls += 1
        return [TerrainDelta(d.cell_index, d.height_delta, d.depth_delta) for d in self.deltas]


@pytest.fixture
def terrain():
    corners = [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]
    return Terrain.generate(corners, lambda p: 1.0, lambda p: 0.0)


class TestFlowEngine:
    """Test stepping and delta scaling."""

    def test_flow_is_abstract(self):
        with pytest.raises(TypeError):
            Flow()

    def test_step_scales_by_time_delta(self, terrain):
        strategy = FixedFlow([TerrainDelta(0, 1.0, 2.0), TerrainDelta(0, -0.5, 0.0),
                              TerrainDelta(3, 0.0, 4.0)])
        engine = FlowEngine(terrain, strategy)

        applied = engine.step(0.25)

        assert strategy.calls == 1
        assert len(applied) == 3
        assert engine.terrain[0].height == pytest.approx(1.125)
        assert engine.terrain[0].depth == pytest.approx(0.5)
        assert engine.terrain[3].depth == pytest.approx(1.0)
        assert engine.terrain[1].height == 1.0

    def test_strategy_deltas_left_unscaled(self, terrain):
        strategy = FixedFlow([TerrainDelta(1, 2.0, 0.0)])
        FlowEngine(terrain, strategy).step(3.0)
        assert strategy.deltas[0].height_delta == 2.0

    def test_steps_accumulate(self, terrain):
        engine = FlowEngine(terrain, FixedFlow([TerrainDelta(2, 0.0, 0.1)]))
        for _ in range(10):
            engine.step(1.0)

        assert engine.steps == 10
        assert engine.terrain[2].depth == pytest.approx(1.0)

    def test_rainfall_with_default_flow(self, terrain):
        """Flat dry ground only changes through precipitation."""
        strategy = DefaultFlow(0.9, 1.0, 0.2, 0.5, precipitation_rate=1.0,
                               precipitation_amount=0.01, workers=2)
        engine = FlowEngine(terrain, strategy)
        engine.step(2.0)

        for cell in engine.terrain:
            assert cell.height == pytest.approx(1.0)
            assert cell.depth == pytest.approx(0.02)
