"""Fetch interactive map assets and write the local map bundle.

Downloads the upstream map feed, renders one PNG per interactive map (SVG
sources are rasterized, tile pyramids are downloaded and composed), and writes
``maps.json`` next to the ``maps/`` raster folder.

Usage:
    fetch-maps
    fetch-maps --force --tile-zoom-offset 1
    python src/fetch_maps.py --assets-dir /tmp/assets -v
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bundle.orchestrate import build_bundle
from config import DEFAULT_TILE_ZOOM_OFFSET, get_assets_dir
from exceptions import MapAssetError
from logging_config import setup_logging

logger = logging.getLogger("fetch_maps")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fetch-maps",
        description="Fetch interactive map assets and build the local map bundle"
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Re-process all assets, ignoring cached rasters"
    )
    parser.add_argument(
        "--tile-zoom-offset",
        type=int,
        default=DEFAULT_TILE_ZOOM_OFFSET,
        help="Zoom levels below each tile source's max (0 = max quality, higher = smaller files)"
    )
    parser.add_argument(
        "--assets-dir",
        type=Path,
        default=None,
        help="Output directory for maps.json and maps/ (default: MAP_ASSETS_DIR or ./assets)"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also append log output to this file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    assets_dir = args.assets_dir or get_assets_dir()
    try:
        summary = await build_bundle(
            assets_dir=assets_dir,
            force=args.force,
            tile_zoom_offset=args.tile_zoom_offset,
        )
    except MapAssetError as e:
        logger.error(f"Build failed: {e}")
        return 1

    logger.info("Maps:")
    for m in summary.maps:
        logger.info(f"  - {m.name} ({m.normalized_name})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    # Configure the root logger so every module's logger reaches the console
    setup_logging(
        "",
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
