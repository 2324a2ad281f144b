"""Map bundle build pipeline.

Orchestrates the full build:
1. Fetch display names, player spawns and extracts from the enrichment API
2. Fetch the upstream map group feed
3. For each group, in source order and one at a time:
   normalize the interactive variant, render its raster, assemble the record
4. Write the ordered map list to the bundle file

Groups without an interactive variant are skipped and counted. Any other
per-map error aborts the run; no partial bundle is written.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel

from config import (
    BUNDLE_FILENAME,
    DEFAULT_TILE_ZOOM_OFFSET,
    HTTP_TIMEOUT,
    get_assets_dir,
)
from exceptions import ConfigurationError
from maps.models import Extract, Map, Spawn
from maps.normalize import normalize_descriptor, resolve_display_name
from maps.source_client import SourceDataClient
from rendering.cache import RasterCache
from rendering.renderer import render_map_asset
from rendering.tile_fetcher import ProgressCallback
from bundle.writer import assemble_map, write_bundle

logger = logging.getLogger(__name__)


class BuildSummary(BaseModel):
    """Result of build_bundle()."""

    maps: List[Map]
    skipped: int = 0
    bundle_path: Path


def _tile_progress_logger(map_name: str) -> ProgressCallback:
    def report(completed: int, total: int) -> None:
        step = max(1, total // 10)
        if completed % step == 0 or completed == total:
            logger.debug(f"  {map_name}: {completed}/{total} tiles")
    return report


async def build_group(
    http: httpx.AsyncClient,
    group: dict,
    names: Dict[str, str],
    spawns: Dict[str, List[Spawn]],
    extracts: Dict[str, List[Extract]],
    cache: RasterCache,
    tile_zoom_offset: int,
    force: bool = False
) -> Optional[Map]:
    """
    Build the record for one upstream map group.

    Returns:
        The assembled Map, or None if the group has no interactive variant

    Raises:
        NormalizationError: Missing name/source/zoom or malformed fields
        FetchError / HttpStatusError / DecodeError / CacheError: Raster build failed
    """
    descriptor = normalize_descriptor(group)
    if descriptor is None:
        return None

    map_name = descriptor.normalized_name
    display_name = resolve_display_name(map_name, names)

    asset = await render_map_asset(
        http,
        descriptor,
        cache,
        tile_zoom_offset,
        force=force,
        progress=_tile_progress_logger(map_name),
    )

    return assemble_map(
        descriptor,
        display_name,
        asset,
        spawns=spawns.get(map_name),
        extracts=extracts.get(map_name),
    )


async def build_bundle(
    assets_dir: Optional[Path] = None,
    force: bool = False,
    tile_zoom_offset: int = DEFAULT_TILE_ZOOM_OFFSET,
    http: Optional[httpx.AsyncClient] = None,
    source: Optional[SourceDataClient] = None,
    cache: Optional[RasterCache] = None
) -> BuildSummary:
    """
    Build every interactive map and write the bundle.

    Args:
        assets_dir: Directory for the bundle and rasters (default from config)
        force: Rebuild rasters even when cached
        tile_zoom_offset: Zoom levels to drop below each tile source's max
        http: Optional shared client (a new one is created and closed otherwise)
        source: Optional SourceDataClient (defaults to one built on ``http``)
        cache: Optional RasterCache (defaults to one rooted at ``assets_dir``)

    Returns:
        BuildSummary with the written maps, the skip count and the bundle path

    Raises:
        ConfigurationError: If tile_zoom_offset is negative
        MapAssetError: Any fetch, normalization, render or write failure
    """
    if tile_zoom_offset < 0:
        raise ConfigurationError(
            f"tile zoom offset must be >= 0, got {tile_zoom_offset}",
            key="tile_zoom_offset",
        )

    assets_dir = Path(assets_dir) if assets_dir else get_assets_dir()
    cache = cache or RasterCache(assets_dir)

    if force:
        logger.info("Force mode enabled - re-processing all assets")

    owns_client = http is None
    if owns_client:
        http = httpx.AsyncClient(timeout=HTTP_TIMEOUT, follow_redirects=True)

    try:
        source = source or SourceDataClient(http)

        logger.info("Fetching map names...")
        names = await source.fetch_map_names()
        logger.info(f"Fetched {len(names)} map names")

        logger.info("Fetching PMC spawns...")
        spawns = await source.fetch_map_spawns()
        logger.info(f"Fetched {sum(len(s) for s in spawns.values())} PMC spawns")

        logger.info("Fetching extracts...")
        extracts = await source.fetch_map_extracts()
        logger.info(f"Fetched {sum(len(e) for e in extracts.values())} extracts")

        groups = await source.fetch_map_groups()
        logger.info(f"Parsed {len(groups)} map groups")

        maps: List[Map] = []
        skipped = 0
        for index, group in enumerate(groups, start=1):
            group_name = group.get("normalizedName", "<unknown>")
            logger.info(f"[{index}/{len(groups)}] {group_name}")

            record = await build_group(
                http, group, names, spawns, extracts, cache, tile_zoom_offset, force=force
            )
            if record is None:
                logger.warning(f"Skipping {group_name}: no interactive variant")
                skipped += 1
                continue
            maps.append(record)
    finally:
        if owns_client:
            await http.aclose()

    logger.info(f"Processed {len(maps)} interactive maps (skipped {skipped})")

    bundle_path = write_bundle(maps, assets_dir / BUNDLE_FILENAME)
    return BuildSummary(maps=maps, skipped=skipped, bundle_path=bundle_path)
