"""Download a tile pyramid level and compose it into one raster.

A tile source is a ``{z}/{x}/{y}`` template. For a chosen zoom ``z`` the
pyramid is a ``2**z x 2**z`` grid of ``tile_size`` square images; all of them
are downloaded (bounded by a semaphore) and pasted into a single canvas.
"""

import asyncio
import logging
from io import BytesIO
from typing import Callable, List, Optional, Tuple

import httpx
from PIL import Image, UnidentifiedImageError

from config import TILE_DOWNLOAD_CONCURRENCY
from exceptions import TileDecodeError
from maps.models import RasterAsset, TileSource
from maps.source_client import fetch_bytes
from rendering.cache import RasterCache

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
TileResult = Tuple[int, int, bytes]


def target_zoom(min_zoom: int, max_zoom: int, zoom_offset: int) -> int:
    """Zoom level to build: ``max_zoom - zoom_offset``, never below ``min_zoom``."""
    return max(min_zoom, max_zoom - zoom_offset)


def expand_template(template: str, z: int, x: int, y: int) -> str:
    """Substitute ``{z}``, ``{x}`` and ``{y}`` in a tile URL template."""
    return (
        template
        .replace("{z}", str(z))
        .replace("{x}", str(x))
        .replace("{y}", str(y))
    )


def tile_coordinates(tiles_per_axis: int) -> List[Tuple[int, int]]:
    """All ``(x, y)`` pairs of a square grid."""
    return [(x, y) for x in range(tiles_per_axis) for y in range(tiles_per_axis)]


async def download_tiles(
    http: httpx.AsyncClient,
    template: str,
    zoom: int,
    max_concurrent: int = TILE_DOWNLOAD_CONCURRENCY,
    progress: Optional[ProgressCallback] = None
) -> List[TileResult]:
    """
    Download every tile of one zoom level.

    Args:
        http: Shared async HTTP client
        template: Tile URL template containing ``{z}``, ``{x}``, ``{y}``
        zoom: Zoom level to download
        max_concurrent: Maximum in-flight requests (default 32)
        progress: Optional callback receiving ``(completed, total)``

    Returns:
        List of ``(x, y, bytes)`` in completion-independent order

    Raises:
        FetchError / HttpStatusError: For the first tile that fails. All
            other pending downloads are cancelled.
    """
    coords = tile_coordinates(1 << zoom)
    total = len(coords)
    completed = 0
    semaphore = asyncio.Semaphore(max_concurrent)

    async def fetch_one(x: int, y: int) -> TileResult:
        nonlocal completed
        url = expand_template(template, zoom, x, y)
        async with semaphore:
            data = await fetch_bytes(http, url, f"tile z={zoom} x={x} y={y}")
        completed += 1
        if progress:
            progress(completed, total)
        return x, y, data

    logger.info(f"Downloading {total} tiles at zoom {zoom} with max_concurrent={max_concurrent}")
    tasks = [asyncio.create_task(fetch_one(x, y)) for x, y in coords]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def compose_tiles(tiles: List[TileResult], tile_size: int, tiles_per_axis: int) -> Image.Image:
    """
    Paste decoded tiles into one RGBA canvas of ``tiles_per_axis * tile_size`` pixels.

    Tiles land at ``(x * tile_size, y * tile_size)``; anything outside the
    canvas is clipped by Pillow.

    Raises:
        TileDecodeError: If a tile is not a readable image
    """
    full_size = tiles_per_axis * tile_size
    canvas = Image.new("RGBA", (full_size, full_size))

    for x, y, data in tiles:
        try:
            with Image.open(BytesIO(data)) as tile:
                tile_rgba = tile.convert("RGBA")
        except (UnidentifiedImageError, OSError) as e:
            raise TileDecodeError(f"tile x={x} y={y} could not be decoded: {e}") from e
        canvas.paste(tile_rgba, (x * tile_size, y * tile_size))

    return canvas


async def build_tile_map(
    http: httpx.AsyncClient,
    map_name: str,
    source: TileSource,
    cache: RasterCache,
    zoom_offset: int,
    force: bool = False,
    max_concurrent: int = TILE_DOWNLOAD_CONCURRENCY,
    progress: Optional[ProgressCallback] = None
) -> RasterAsset:
    """
    Build (or reuse) the raster for a tile-sourced map.

    Args:
        http: Shared async HTTP client
        map_name: Normalized map name, the cache key
        source: Tile source with template, tile size and zoom range
        cache: Raster cache
        zoom_offset: Levels to drop below ``source.max_zoom``
        force: Rebuild even if a cached raster exists
        max_concurrent: Maximum in-flight tile requests
        progress: Optional ``(completed, total)`` observer

    Returns:
        RasterAsset with ``image_size`` of ``tile_size`` square and the
        composed canvas dimensions as ``pixel_size``
    """
    zoom = target_zoom(source.min_zoom, source.max_zoom, zoom_offset)
    tiles_per_axis = 1 << zoom
    image_size = (float(source.tile_size), float(source.tile_size))
    relative_path = cache.relative_path(map_name)

    if not force:
        cached = cache.lookup(map_name)
        if cached is not None:
            logger.info(f"Using cached raster for {map_name} ({cached[0]}x{cached[1]})")
            return RasterAsset(
                path=relative_path,
                image_size=image_size,
                pixel_size=(float(cached[0]), float(cached[1])),
            )

    tiles = await download_tiles(
        http,
        source.url_template,
        zoom,
        max_concurrent=max_concurrent,
        progress=progress,
    )

    canvas = await asyncio.to_thread(compose_tiles, tiles, source.tile_size, tiles_per_axis)
    await asyncio.to_thread(cache.store, map_name, canvas)
    logger.info(f"Composed {len(tiles)} tiles into {canvas.width}x{canvas.height} raster for {map_name}")

    return RasterAsset(
        path=relative_path,
        image_size=image_size,
        pixel_size=(float(canvas.width), float(canvas.height)),
    )
