"""Rasterize SVG map sources at a fixed supersampling scale."""

import asyncio
import logging
from io import BytesIO
from xml.etree.ElementTree import ParseError

import httpx
from PIL import Image

from config import SVG_RENDER_SCALE
from exceptions import SvgParseError
from maps.models import RasterAsset, SvgSource
from maps.source_client import fetch_bytes
from rendering.cache import RasterCache

logger = logging.getLogger(__name__)


def rasterize_svg(svg_bytes: bytes, scale: float = SVG_RENDER_SCALE) -> Image.Image:
    """
    Render an SVG document to an RGBA image, scaled uniformly on both axes.

    Blocking; callers on the event loop should run it in a thread.

    Raises:
        SvgParseError: If the document is not valid SVG
    """
    # Loads the native cairo library; only SVG builds need it
    import cairosvg

    try:
        png_bytes = cairosvg.svg2png(bytestring=svg_bytes, scale=scale)
    except (ParseError, ValueError) as e:
        raise SvgParseError(f"SVG parse error: {e}") from e

    with Image.open(BytesIO(png_bytes)) as img:
        return img.convert("RGBA")


async def build_svg_map(
    http: httpx.AsyncClient,
    map_name: str,
    source: SvgSource,
    cache: RasterCache,
    force: bool = False,
    scale: float = SVG_RENDER_SCALE
) -> RasterAsset:
    """
    Build (or reuse) the raster for an SVG-sourced map.

    Args:
        http: Shared async HTTP client
        map_name: Normalized map name, the cache key
        source: SVG source URL
        cache: Raster cache
        force: Rebuild even if a cached raster exists
        scale: Supersampling factor (default 2.0)

    Returns:
        RasterAsset whose ``image_size`` is the SVG document size and whose
        ``pixel_size`` is that size times ``scale``
    """
    relative_path = cache.relative_path(map_name)

    if not force:
        cached = cache.lookup(map_name)
        if cached is not None:
            logger.info(f"Using cached raster for {map_name} ({cached[0]}x{cached[1]})")
            return RasterAsset(
                path=relative_path,
                image_size=(cached[0] / scale, cached[1] / scale),
                pixel_size=(float(cached[0]), float(cached[1])),
            )

    svg_bytes = await fetch_bytes(http, source.url, f"SVG for {map_name}")
    logger.debug(f"Fetched {len(svg_bytes)} bytes of SVG for {map_name}")

    image = await asyncio.to_thread(rasterize_svg, svg_bytes, scale)
    await asyncio.to_thread(cache.store, map_name, image)
    logger.info(f"Rendered {map_name} SVG at {scale}x -> {image.width}x{image.height}")

    return RasterAsset(
        path=relative_path,
        image_size=(image.width / scale, image.height / scale),
        pixel_size=(float(image.width), float(image.height)),
    )
