"""Select the rendering strategy for a map source."""

import logging
from typing import Optional

import httpx

from config import SVG_RENDER_SCALE, TILE_DOWNLOAD_CONCURRENCY
from maps.models import MapDescriptor, RasterAsset, SvgSource, TileSource
from rendering.cache import RasterCache
from rendering.svg_renderer import build_svg_map
from rendering.tile_fetcher import ProgressCallback, build_tile_map

logger = logging.getLogger(__name__)


async def render_map_asset(
    http: httpx.AsyncClient,
    descriptor: MapDescriptor,
    cache: RasterCache,
    zoom_offset: int,
    force: bool = False,
    svg_scale: float = SVG_RENDER_SCALE,
    max_concurrent: int = TILE_DOWNLOAD_CONCURRENCY,
    progress: Optional[ProgressCallback] = None
) -> RasterAsset:
    """
    Produce the raster for one map using the strategy its source calls for.

    SVG sources are rasterized once at ``svg_scale``; tile sources are
    downloaded at ``max_zoom - zoom_offset`` and composed.
    """
    source = descriptor.source
    name = descriptor.normalized_name

    if isinstance(source, SvgSource):
        logger.debug(f"{name}: SVG source {source.url}")
        return await build_svg_map(http, name, source, cache, force=force, scale=svg_scale)

    if isinstance(source, TileSource):
        logger.debug(f"{name}: tile source {source.url_template}")
        return await build_tile_map(
            http,
            name,
            source,
            cache,
            zoom_offset,
            force=force,
            max_concurrent=max_concurrent,
            progress=progress,
        )

    raise TypeError(f"Unsupported map source for {name}: {type(source).__name__}")
