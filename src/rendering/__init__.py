"""Raster production for map sources (SVG documents and tile pyramids)."""

from .cache import RasterCache
from .renderer import render_map_asset

__all__ = ["RasterCache", "render_map_asset"]
