"""
Frame rendering: cells are shaded individually and splatted onto a pixel
grid with bilinear weights, then written out as PNG.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import NamedTuple, Union

import numpy as np
import structlog
from matplotlib import image as mpimg

from .terrain import Cell, Terrain

logger = structlog.get_logger()

LIGHT_VECTOR = np.array([-1.0, 1.0, 1.0]) / np.sqrt(3.0)


class RGB(NamedTuple):
    """Linear colour, nominally in [0, 1] per channel."""
    r: float
    g: float
    b: float


class Shader(ABC):
    """Colours a single cell."""

    @abstractmethod
    def shade_cell(self, cell: Cell, terrain: Terrain) -> RGB:
        pass


class DefaultShader(Shader):
    """Blue for standing water over low ground, lit earth tones elsewhere."""

    def shade_cell(self, cell: Cell, terrain: Terrain) -> RGB:
        if cell.depth > 0.1 and cell.height < 1.0:
            factor = (cell.depth - 0.1) * 2.0 + 0.5
            return RGB(0.2 / factor, 0.4 / factor, 1.0 / factor)

        lighting = self.lighting(cell, terrain)
        lit = lighting * lighting * lighting
        return RGB(1.0 * lit, 0.5 * lit, 0.1 * lit)

    def lighting(self, cell: Cell, terrain: Terrain) -> float:
        """Average alignment of the per-edge surface normals with the light."""
        if not cell.neighbor_data:
            return 0.0

        p_cell = np.array([cell.x, cell.y, cell.height])
        total = 0.0
        for nd in cell.neighbor_data:
            neighbor = terrain.get_cell(nd.index)
            v_neighbor = np.array([neighbor.x, neighbor.y, neighbor.height]) - p_cell
            # Horizontal perpendicular to the edge, crossed back with the edge
            v_normal = np.cross([v_neighbor[1], -v_neighbor[0], 0.0], v_neighbor)
            v_normal /= np.linalg.norm(v_normal)
            total += float(np.dot(v_normal, LIGHT_VECTOR))
        return 2.0 * total / len(cell.neighbor_data)


class PixelBuffer:
    """Weighted colour accumulator with y=0 on the bottom row."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.rgb = np.zeros((height, width, 3), dtype=np.float64)
        self.weight = np.zeros((height, width), dtype=np.float64)

    def add_color(self, x: float, y: float, color: RGB) -> None:
        px0 = int(np.floor(x - 0.5))
        py0 = int(np.floor(y - 0.5))
        for px in range(px0, px0 + 2):
            for py in range(py0, py0 + 2):
                if 0 <= px < self.width and 0 <= py < self.height:
                    wx = 1.0 - abs(px + 0.5 - x)
                    wy = 1.0 - abs(py + 0.5 - y)
                    w = wx * wy
                    row = self.height - py - 1
                    self.rgb[row, px] += np.asarray(color) * w
                    self.weight[row, px] += w

    def to_image(self) -> np.ndarray:
        """8-bit RGB image, uncovered pixels black."""
        colors = np.zeros_like(self.rgb)
        covered = self.weight > 0.0
        colors[covered] = self.rgb[covered] / self.weight[covered][:, None]
        return np.clip(np.floor(colors * 256.0), 0, 255).astype(np.uint8)


class Renderer:
    """
    Writes one ``frame_NNNNNN.png`` per call to ``render``.

    matplotlib always encodes PNG as RGBA, so frames carry a fully opaque
    alpha channel alongside the 8-bit RGB colour.
    """

    def __init__(self, width: int, height: int, shader: Shader,
                 render_path: Union[str, Path]):
        self.width = width
        self.height = height
        self.shader = shader
        self.render_path = Path(render_path)

    def rasterize(self, terrain: Terrain) -> np.ndarray:
        pixels = PixelBuffer(self.width, self.height)
        for cell in terrain:
            pixels.add_color(cell.x, cell.y, self.shader.shade_cell(cell, terrain))
        return pixels.to_image()

    def frame_path(self, frame_num: int) -> Path:
        return self.render_path / f"frame_{frame_num:06d}.png"

    def render(self, terrain: Terrain, frame_num: int) -> Path:
        path = self.frame_path(frame_num)
        mpimg.imsave(path, self.rasterize(terrain))
        logger.debug("Frame written", path=str(path))
        return path
