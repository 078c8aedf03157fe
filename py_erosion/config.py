"""Configuration management."""

import sys
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Simulation settings, overridable through ``EROSION_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EROSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Domain
    width: int = Field(default=1280, gt=0, description="Domain and image width in pixels")
    height: int = Field(default=720, gt=0, description="Domain and image height in pixels")
    density: int = Field(default=2, gt=0, description="Points per unit length (spacing is 1/density)")
    max_z: float = Field(default=36.0, allow_inf_nan=False, description="Peak initial terrain height")

    # Flow model
    flow_rate: float = Field(default=0.9, allow_inf_nan=False, description="Fraction of permitted outflow moved per step")
    flow_erosion_rate: float = Field(default=1.0, allow_inf_nan=False, description="Height eroded per unit outflow")
    erosion_threshold: float = Field(default=0.2, allow_inf_nan=False, description="Minimum slope for height transfer")
    erosion_rate: float = Field(default=0.5, allow_inf_nan=False, description="Fraction of permitted height transfer per step")
    precipitation_rate: float = Field(default=0.001, gt=0, lt=1, allow_inf_nan=False, description="Per-cell rainfall chance per step")
    precipitation_amount: float = Field(default=0.01, allow_inf_nan=False, description="Depth added by one rainfall")

    # Run loop
    render_step: float = Field(default=1.0, gt=0, allow_inf_nan=False, description="Simulated time per step")
    frame_skip: int = Field(default=30, gt=0, description="Steps between rendered frames")
    frame_count: int = Field(default=20000, gt=0, description="Number of frames to render")
    workers: Optional[int] = Field(default=None, ge=1, description="Flow worker threads (default: one per CPU)")
    seed: Optional[int] = Field(default=None, description="Seed for point generation and precipitation")

    # Paths
    data_path: str = Field(default="./point_data", description="Directory for point caches")
    render_path: str = Field(default="./render", description="Directory for rendered frames")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "plain"] = Field(default="json", description="Logging format (plain, json)")

    @field_validator("render_step")
    @classmethod
    def render_step_is_normal(cls, value: float) -> float:
        if value < sys.float_info.min:
            raise ValueError("render_step must be a normal floating point number")
        return value

