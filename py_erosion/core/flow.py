"""Simulation engine and the interface for pluggable flow models."""

from abc import ABC, abstractmethod
from typing import List

import structlog

from .terrain import Terrain, TerrainDelta

logger = structlog.get_logger()


class Flow(ABC):
    """Computes one unscaled step of deltas from a terrain snapshot."""

    @abstractmethod
    def flow(self, terrain: Terrain) -> List[TerrainDelta]:
        """
        Compute deltas for every cell of ``terrain``.

        Implementations must not mutate the terrain.
        """


class FlowEngine:
    """
    Owns a terrain and advances it with a flow model.

    The terrain is only ever changed by ``step``; callers get read access
    through ``terrain``.
    """

    def __init__(self, terrain: Terrain, strategy: Flow):
        self._terrain = terrain
        self.strategy = strategy
        self.steps = 0

    @property
    def terrain(self) -> Terrain:
        return self._terrain

    def step(self, time_delta: float) -> List[TerrainDelta]:
        """
        Advance the simulation by ``time_delta``.

        Returns:
            The scaled deltas that were applied
        """
        deltas = [delta.scaled(time_delta) for delta in self.strategy.flow(self._terrain)]
        self._terrain.apply_deltas(deltas)
        self.steps += 1

        logger.debug("Simulation step applied", step=self.steps,
                     time_delta=time_delta, deltas=len(deltas))
        return deltas
