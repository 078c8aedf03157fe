"""Procedural terrain generation with hydraulic erosion."""

__version__ = "0.1.0"
