"""
Batch simulation run: point cache, terrain construction and the frame loop.
"""

from pathlib import Path
from typing import Optional

import structlog

from .config import Settings
from .core.default_flow import DefaultFlow
from .core.flow import FlowEngine
from .core.point_cache import load_points, points_cache_path, save_points
from .core.points import generate_points
from .core.render import DefaultShader, Renderer
from .core.surface import dome_height, sea_depth
from .core.terrain import Terrain

logger = structlog.get_logger()


class Runner:
    """Drives a full simulation from validated settings."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.data_path = Path(settings.data_path)
        self.render_path = Path(settings.render_path)

    @property
    def points_path(self) -> Path:
        s = self.settings
        return points_cache_path(self.data_path, s.width, s.height, s.density)

    def ensure_points(self) -> Path:
        """Generate the point cache unless one for these dimensions exists."""
        path = self.points_path
        if path.exists():
            logger.info("Reusing point cache", path=str(path))
            return path

        s = self.settings
        self.data_path.mkdir(parents=True, exist_ok=True)
        logger.info("Generating points", width=s.width, height=s.height, density=s.density)
        save_points(path, generate_points(s.width, s.height, 1.0 / s.density, seed=s.seed))
        return path

    def build_engine(self) -> FlowEngine:
        s = self.settings
        height_at = dome_height(s.width, s.height, s.max_z)
        terrain = Terrain.generate(load_points(self.ensure_points()),
                                   height_at, sea_depth(height_at))

        logger.info("Configuring flow engine", cells=len(terrain), workers=s.workers)
        strategy = DefaultFlow(
            flow_rate=s.flow_rate,
            flow_erosion_rate=s.flow_erosion_rate,
            erosion_threshold=s.erosion_threshold,
            erosion_rate=s.erosion_rate,
            precipitation_rate=s.precipitation_rate,
            precipitation_amount=s.precipitation_amount,
            workers=s.workers,
            seed=s.seed,
        )
        return FlowEngine(terrain, strategy)

    def run(self, engine: Optional[FlowEngine] = None) -> FlowEngine:
        """Render ``frame_count`` frames, stepping ``frame_skip`` times after each."""
        s = self.settings
        engine = engine or self.build_engine()

        self.render_path.mkdir(parents=True, exist_ok=True)
        renderer = Renderer(s.width, s.height, DefaultShader(), self.render_path)

        logger.info("Rendering", frames=s.frame_count, frame_skip=s.frame_skip)
        for frame_num in range(s.frame_count):
            logger.info("Frame", frame=frame_num + 1, of=s.frame_count)
            renderer.render(engine.terrain, frame_num)
            for _ in range(s.frame_skip):
                engine.step(s.render_step)

        return engine
