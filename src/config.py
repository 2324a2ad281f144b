"""Centralized configuration for the map asset builder.

This module provides:
- PROJECT_ROOT and SRC_DIR paths
- Environment variable access with get_env()
- Automatic .env loading
- Build constants shared by the renderers and the bundle writer

Usage:
    from config import get_assets_dir, get_maps_json_url

    maps_url = get_maps_json_url()
    bundle_path = get_assets_dir() / BUNDLE_FILENAME
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Calculate paths once at import time
SRC_DIR = Path(__file__).parent.resolve()
PROJECT_ROOT = SRC_DIR.parent.resolve()

# Load .env from project root
_env_path = PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

USER_AGENT = "tarkov-map"

# Upper bound on in-flight tile requests for a single map
TILE_DOWNLOAD_CONCURRENCY = 32

# Supersampling factor applied when rasterizing SVG sources
SVG_RENDER_SCALE = 2.0

DEFAULT_TILE_SIZE = 256
DEFAULT_TILE_ZOOM_OFFSET = 2

# Raster paths inside the bundle are relative to the assets directory
MAPS_PATH_PREFIX = "maps"
BUNDLE_FILENAME = "maps.json"

HTTP_TIMEOUT = 60.0


def get_env(key: str, default: Optional[str] = None) -> str:
    """Get environment variable value.

    Args:
        key: Environment variable name
        default: Default value if not set. If None and key not found, raises KeyError.

    Returns:
        Environment variable value or default

    Raises:
        KeyError: If key not found and no default provided
    """
    value = os.environ.get(key)
    if value is not None:
        return value
    if default is not None:
        return default
    raise KeyError(f"Environment variable '{key}' not set and no default provided")


def get_maps_json_url() -> str:
    """Get URL of the upstream map descriptor feed."""
    return get_env(
        "MAPS_JSON_URL",
        default="https://raw.githubusercontent.com/the-hideout/tarkov-dev/main/src/data/maps.json",
    )


def get_graphql_url() -> str:
    """Get URL of the enrichment GraphQL API."""
    return get_env("TARKOV_GRAPHQL_URL", default="https://api.tarkov.dev/graphql")


def get_assets_dir() -> Path:
    """Get the directory holding the bundle and the maps/ raster folder."""
    return Path(get_env("MAP_ASSETS_DIR", default=str(PROJECT_ROOT / "assets")))
