"""Assemble map records and persist them as the bundle file."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from exceptions import BundleFormatError, BundleNotFoundError, BundleWriteError
from maps.models import Bounds, Extract, Map, MapDescriptor, RasterAsset, Size, Spawn

logger = logging.getLogger(__name__)


def compute_logical_size(bounds: Optional[Bounds], image_size: Size) -> Size:
    """
    World-unit size of a map: the extent of ``bounds`` when present,
    otherwise the raster's image size.

    Example:
        >>> compute_logical_size(((100, -50), (-100, 50)), (256, 256))
        (200.0, 100.0)
    """
    if bounds is None:
        return image_size
    (max_x, min_y), (min_x, max_y) = bounds
    return (float(abs(max_x - min_x)), float(abs(max_y - min_y)))


def assemble_map(
    descriptor: MapDescriptor,
    name: str,
    asset: RasterAsset,
    spawns: Optional[List[Spawn]] = None,
    extracts: Optional[List[Extract]] = None
) -> Map:
    """Combine a descriptor, its raster and enrichment into one bundle record."""
    return Map(
        normalized_name=descriptor.normalized_name,
        name=name,
        image_path=asset.path,
        image_size=asset.image_size,
        pixel_size=asset.pixel_size,
        logical_size=compute_logical_size(descriptor.bounds, asset.image_size),
        alt_maps=descriptor.alt_maps,
        author=descriptor.author,
        author_link=descriptor.author_link,
        transform=descriptor.transform,
        coordinate_rotation=descriptor.coordinate_rotation,
        bounds=descriptor.bounds,
        height_range=descriptor.height_range,
        layers=descriptor.layers,
        labels=descriptor.labels,
        spawns=spawns,
        extracts=extracts,
    )


def serialize_bundle(maps: Sequence[Map]) -> str:
    """Serialize maps to indented JSON, camelCase keys, absent fields omitted."""
    data = [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in maps]
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_bundle(maps: Sequence[Map], path: Path) -> Path:
    """
    Write the ordered map list to ``path``.

    The file is replaced atomically, so readers see either the previous
    bundle or the new one.

    Raises:
        BundleWriteError: If serialization or the write fails
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".part")
    try:
        content = serialize_bundle(maps)
        path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, TypeError, ValueError) as e:
        raise BundleWriteError(f"failed to write bundle {path}: {e}") from e

    try:
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise BundleWriteError(f"failed to write bundle {path}: {e}") from e

    logger.info(f"Wrote {len(maps)} maps ({len(content)} bytes) to {path}")
    return path


def load_bundle(path: Path) -> List[Map]:
    """
    Read a bundle written by ``write_bundle``.

    Raises:
        BundleNotFoundError: If the file does not exist
        BundleFormatError: If the file is not a valid map list
    """
    path = Path(path)
    if not path.exists():
        raise BundleNotFoundError(f"bundle not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BundleFormatError(f"failed to parse {path}: {e}") from e

    if not isinstance(data, list):
        raise BundleFormatError(f"{path} does not contain a list of maps")

    try:
        return [Map.model_validate(entry) for entry in data]
    except ValidationError as e:
        raise BundleFormatError(f"invalid map record in {path}: {e}") from e
