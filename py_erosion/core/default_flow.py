"""
Default hydraulic erosion model.

Each step, every cell independently:
- sends water to neighbours whose total surface (height + depth) is lower,
  weighted by the cube of the surface slope, eroding its own height in
  proportion to the outflow;
- sheds height to neighbours whose terrain slope exceeds the erosion
  threshold, weighted linearly by slope;
- may receive precipitation;
- is damped back toward non-negative height and at most unit depth.

The water pass lowers the source cell's height but never raises the
receiving cell's height; only the erosion pass deposits material. Cells are
evaluated in parallel against the unchanged terrain and all changes are
returned as additive deltas.
"""

import os
import queue
import threading
from typing import Callable, Dict, List, NamedTuple, Optional

import numpy as np
import structlog

from .flow import Flow
from .terrain import Cell, NeighborData, Terrain, TerrainDelta

logger = structlog.get_logger()

_DONE = object()


class TransferWeight(NamedTuple):
    """Unnormalised transfer propensity and the most it may move."""
    weight: float
    available: float


def aggregate_transfer_weights(weights: Dict[int, TransferWeight]) -> TransferWeight:
    """Sum the weights and keep the tightest ``available`` cap."""
    total_weight = 0.0
    available = float("inf")
    for transfer in weights.values():
        total_weight += transfer.weight
        available = min(available, transfer.available)
    return TransferWeight(total_weight, available)


def calc_transfer_weights(
    terrain: Terrain, cell: Cell,
    calc: Callable[[Cell, Cell, NeighborData], Optional[TransferWeight]],
) -> Dict[int, TransferWeight]:
    """Evaluate ``calc`` against every neighbour, keeping accepted transfers."""
    weights = {}
    for nd in cell.neighbor_data:
        transfer = calc(cell, terrain.get_cell(nd.index), nd)
        if transfer is not None:
            weights[nd.index] = transfer
    return weights


class DefaultFlow(Flow):
    """
    Parallel water flow, erosion, precipitation and sink damping.

    Args:
        flow_rate: Fraction of the permitted outflow moved per step
        flow_erosion_rate: Height removed from a cell per unit of outflow
        erosion_threshold: Slope a neighbour must exceed to receive material
        erosion_rate: Fraction of the permitted height transfer moved per step
        precipitation_rate: Per-cell, per-step chance of rainfall
        precipitation_amount: Depth added by one rainfall
        workers: Worker thread count, one per CPU by default
        seed: Seed for the precipitation generators
        rng_factory: Overrides ``seed``; called once per worker per step
    """

    def __init__(self, flow_rate: float, flow_erosion_rate: float,
                 erosion_threshold: float, erosion_rate: float,
                 precipitation_rate: float, precipitation_amount: float,
                 workers: Optional[int] = None, seed: Optional[int] = None,
                 rng_factory: Optional[Callable[[], np.random.Generator]] = None):
        self.flow_rate = flow_rate
        self.flow_erosion_rate = flow_erosion_rate
        self.erosion_threshold = erosion_threshold
        self.erosion_rate = erosion_rate
        self.precipitation_rate = precipitation_rate
        self.precipitation_amount = precipitation_amount

        self.workers = workers or os.cpu_count() or 1
        self._seed_sequence = np.random.SeedSequence(seed)
        self._rng_factory = rng_factory

    def flow(self, terrain: Terrain) -> List[TerrainDelta]:
        work = queue.Queue(maxsize=1)
        results = queue.Queue(maxsize=1)
        errors: List[BaseException] = []
        rngs = self._worker_rngs()

        def feed():
            for cell_index in range(len(terrain)):
                work.put(cell_index)
            for _ in range(self.workers):
                work.put(_DONE)

        def process(rng: np.random.Generator):
            failed = False
            try:
                # Keep draining after a failure so the feeder never blocks
                for cell_index in iter(work.get, _DONE):
                    if failed:
                        continue
                    try:
                        cell = terrain.get_cell(cell_index)
                        for delta in self.cell_deltas(cell_index, terrain, rng):
                            results.put(delta)
                        for delta in self.sink_deltas(cell_index, cell):
                            results.put(delta)
                    except Exception as e:
                        errors.append(e)
                        failed = True
            finally:
                results.put(_DONE)

        threads = [threading.Thread(target=feed, name="flow-feeder", daemon=True)]
        threads.extend(
            threading.Thread(target=process, args=(rng,), name=f"flow-worker-{i}", daemon=True)
            for i, rng in enumerate(rngs)
        )
        for thread in threads:
            thread.start()

        deltas = []
        finished = 0
        while finished < self.workers:
            item = results.get()
            if item is _DONE:
                finished += 1
            else:
                deltas.append(item)

        for thread in threads:
            thread.join()

        if errors:
            logger.error("Flow step failed", errors=len(errors), error=str(errors[0]))
            raise errors[0]

        return deltas

    def _worker_rngs(self) -> List[np.random.Generator]:
        if self._rng_factory is not None:
            return [self._rng_factory() for _ in range(self.workers)]
        return [np.random.default_rng(child) for child in self._seed_sequence.spawn(self.workers)]

    def cell_deltas(self, cell_index: int, terrain: Terrain,
                    rng: np.random.Generator) -> List[TerrainDelta]:
        """
        Flow, erosion and precipitation deltas for one cell.

        Returns:
            One delta per affected neighbour, followed by the cell's own delta
            when anything changed it
        """
        cell = terrain.get_cell(cell_index)

        flow_weights = calc_transfer_weights(terrain, cell, self.calc_flow_weight)
        flow_agg = aggregate_transfer_weights(flow_weights)

        erosion_weights = calc_transfer_weights(terrain, cell, self.calc_erosion_weight)
        erosion_agg = aggregate_transfer_weights(erosion_weights)

        self_delta: Optional[TerrainDelta] = None
        neighbor_deltas: Dict[int, TerrainDelta] = {}

        for neighbor_index, transfer in flow_weights.items():
            depth_delta = (transfer.weight / flow_agg.weight) * flow_agg.available * self.flow_rate

            if depth_delta > 0.0:
                neighbor_delta = neighbor_deltas.setdefault(neighbor_index, TerrainDelta(neighbor_index))
                neighbor_delta.depth_delta += depth_delta

                if self_delta is None:
                    self_delta = TerrainDelta(cell_index)
                self_delta.depth_delta -= depth_delta
                self_delta.height_delta -= depth_delta * self.flow_erosion_rate

        for neighbor_index, transfer in erosion_weights.items():
            height_delta = (transfer.weight / erosion_agg.weight) * erosion_agg.available * self.erosion_rate

            if height_delta > 0.0:
                neighbor_delta = neighbor_deltas.setdefault(neighbor_index, TerrainDelta(neighbor_index))
                neighbor_delta.height_delta += height_delta

                if self_delta is None:
                    self_delta = TerrainDelta(cell_index)
                self_delta.height_delta -= height_delta

        precipitation = self.calc_precipitation(rng)
        if precipitation is not None:
            if self_delta is None:
                self_delta = TerrainDelta(cell_index)
            self_delta.depth_delta += precipitation

        deltas = list(neighbor_deltas.values())
        if self_delta is not None:
            deltas.append(self_delta)
        return deltas

    def sink_deltas(self, cell_index: int, cell: Cell) -> List[TerrainDelta]:
        """Damp negative height and depth above 1.0 by half each step."""
        height_delta = 0.0
        depth_delta = 0.0
        if cell.height < 0.0:
            height_delta = -0.5 * cell.height
        if cell.depth > 1.0:
            depth_delta = -0.5 * (cell.depth - 1.0)
        return [TerrainDelta(cell_index, height_delta, depth_delta)]

    def calc_flow_weight(self, cell: Cell, neighbor: Cell,
                         nd: NeighborData) -> Optional[TransferWeight]:
        diff = (cell.height + cell.depth) - (neighbor.height + neighbor.depth)
        slope = diff / nd.distance
        if slope > 0.0:
            return TransferWeight(slope * slope * slope, min(cell.depth, diff / 2.0))
        return None

    def calc_erosion_weight(self, cell: Cell, neighbor: Cell,
                            nd: NeighborData) -> Optional[TransferWeight]:
        diff = cell.height - neighbor.height
        slope = diff / nd.distance
        if slope > self.erosion_threshold:
            return TransferWeight(slope, diff / 2.0)
        return None

    def calc_precipitation(self, rng: np.random.Generator) -> Optional[float]:
        if rng.random() < self.precipitation_rate:
            return self.precipitation_amount
        return None
