"""
Terrain mesh construction and erosion simulation.
"""

from .points import Point, Bounds, PointGenerator, generate_points
from .terrain import Cell, NeighborData, Terrain, TerrainDelta, TerrainConstructionError
from .flow import Flow, FlowEngine
from .default_flow import DefaultFlow, TransferWeight

__all__ = ['Point', 'Bounds', 'PointGenerator', 'generate_points',
           'Cell', 'NeighborData', 'Terrain', 'TerrainDelta', 'TerrainConstructionError',
           'Flow', 'FlowEngine', 'DefaultFlow', 'TransferWeight']
