"""On-disk raster cache keyed by map normalized name.

Renderers never touch the filesystem directly; they ask a RasterCache whether
a raster already exists and hand it the finished image to store. Tests can
point the cache at a temporary directory or replace it with a stub.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from config import MAPS_PATH_PREFIX
from exceptions import CacheError

logger = logging.getLogger(__name__)


class RasterCache:
    """
    Stores one PNG per map under ``<assets_dir>/maps/<normalized_name>.png``.

    Usage:
        cache = RasterCache(Path("assets"))
        size = cache.lookup("customs")  # (width, height) or None
        cache.store("customs", image)
    """

    def __init__(self, assets_dir: Path):
        self.assets_dir = Path(assets_dir)
        self.maps_dir = self.assets_dir / MAPS_PATH_PREFIX

    def relative_path(self, map_name: str) -> str:
        """Bundle-relative identifier for a map's raster."""
        return f"{MAPS_PATH_PREFIX}/{map_name}.png"

    def path_for(self, map_name: str) -> Path:
        return self.maps_dir / f"{map_name}.png"

    def lookup(self, map_name: str) -> Optional[Tuple[int, int]]:
        """
        Return the pixel size of a cached raster, or None if none exists.

        Raises:
            CacheError: If a cached file exists but cannot be read as an image
        """
        path = self.path_for(map_name)
        if not path.exists():
            return None

        # Cached rasters come from store(); composed tile maps exceed Pillow's bomb limit
        limit = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = None
        try:
            with Image.open(path) as img:
                size = img.size
        except (OSError, UnidentifiedImageError) as e:
            raise CacheError(path, str(e)) from e
        finally:
            Image.MAX_IMAGE_PIXELS = limit
        logger.debug(f"Cache hit for {map_name}: {size[0]}x{size[1]}")
        return size

    def store(self, map_name: str, image: Image.Image) -> Path:
        """
        Write a raster as PNG, replacing any previous file atomically.

        The image goes to a sibling ``.part`` file and is then renamed into
        place; the final path only ever holds a complete PNG.
        """
        path = self.path_for(map_name)
        tmp_path = path.with_name(path.name + ".part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(path, str(e)) from e
        try:
            image.save(tmp_path, format="PNG")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise CacheError(path, str(e)) from e
        logger.debug(f"Wrote {image.width}x{image.height} raster to {path}")
        return path
