"""Normalize raw upstream map records into strict descriptors.

The upstream ``maps.json`` feed is loosely typed: optional fields everywhere,
rotations that arrive either as numbers or numeric strings, and extent bounds
encoded as positional arrays ``[[x1, y1], [x2, y2], "name"]``. This module is
the one place where that looseness is resolved; everything downstream works
with the models from ``maps.models``.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from config import DEFAULT_TILE_SIZE
from exceptions import (
    InvalidRotationError,
    MissingMapNameError,
    MissingMapSourceError,
    MissingMaxZoomError,
    MissingMinZoomError,
    NormalizationError,
)
from maps.models import (
    Extent,
    ExtentBound,
    Extract,
    Label,
    Layer,
    MapDescriptor,
    Spawn,
    SvgSource,
    TileSource,
)

logger = logging.getLogger(__name__)

INTERACTIVE_PROJECTION = "interactive"
PLAYER_SPAWN_SIDES = ("pmc", "all")
PLAYER_SPAWN_CATEGORY = "player"


def _as_float(value: Any) -> Optional[float]:
    """Return ``value`` as a float if it is a JSON number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def parse_rotation(value: Any, field: str, map_name: str) -> Optional[float]:
    """
    Decode a rotation that may be a number or a numeric string.

    Args:
        value: Raw value from the feed (None when the field is absent)
        field: Field name, used in error messages
        map_name: Normalized map name, used in error messages

    Returns:
        Rotation in degrees, or None if the field was absent

    Raises:
        InvalidRotationError: If the value is any other shape

    Example:
        >>> parse_rotation("180", "coordinateRotation", "customs")
        180.0
    """
    if value is None:
        return None
    number = _as_float(value)
    if number is not None:
        return number
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise InvalidRotationError(map_name, field, value) from None
    raise InvalidRotationError(map_name, field, value)


def parse_extent_bound(values: Any) -> ExtentBound:
    """
    Decode a positional ``[[x1, y1], [x2, y2], "name"]`` bound.

    Missing or ill-typed elements fall back to ``0.0`` and ``""`` so partial
    upstream data never fails the build.
    """
    if not isinstance(values, list):
        values = []

    def point(index: int) -> tuple:
        raw = values[index] if index < len(values) else None
        if not isinstance(raw, list):
            return (0.0, 0.0)
        x = _as_float(raw[0]) if len(raw) > 0 else None
        y = _as_float(raw[1]) if len(raw) > 1 else None
        return (x if x is not None else 0.0, y if y is not None else 0.0)

    name = values[2] if len(values) > 2 and isinstance(values[2], str) else ""
    return ExtentBound(point1=point(0), point2=point(1), name=name)


def select_interactive(group: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first variant of a group with ``projection == "interactive"``."""
    for variant in group.get("maps") or []:
        if isinstance(variant, dict) and variant.get("projection") == INTERACTIVE_PROJECTION:
            return variant
    return None


def _build_source(variant: Mapping[str, Any], map_name: str):
    svg_url = variant.get("svgPath")
    if svg_url:
        return SvgSource(url=svg_url)

    tile_template = variant.get("tilePath")
    if tile_template:
        min_zoom = variant.get("minZoom")
        if min_zoom is None:
            raise MissingMinZoomError(map_name)
        max_zoom = variant.get("maxZoom")
        if max_zoom is None:
            raise MissingMaxZoomError(map_name)
        tile_size = variant.get("tileSize")
        return TileSource(
            url_template=tile_template,
            tile_size=tile_size if tile_size is not None else DEFAULT_TILE_SIZE,
            min_zoom=min_zoom,
            max_zoom=max_zoom,
        )

    raise MissingMapSourceError(map_name)


def _build_label(raw: Mapping[str, Any], map_name: str) -> Label:
    return Label(
        position=raw.get("position"),
        text=raw.get("text"),
        rotation=parse_rotation(raw.get("rotation"), "label rotation", map_name),
        size=raw.get("size"),
        top=raw.get("top"),
        bottom=raw.get("bottom"),
    )


def _build_layer(raw: Mapping[str, Any]) -> Layer:
    extents = []
    for extent in raw.get("extents") or []:
        bounds = extent.get("bounds")
        extents.append(Extent(
            height=extent.get("height"),
            bounds=[parse_extent_bound(b) for b in bounds] if bounds is not None else None,
        ))
    return Layer(
        name=raw.get("name"),
        svg_layer=raw.get("svgLayer"),
        tile_path=raw.get("tilePath"),
        show=bool(raw.get("show", False)),
        extents=extents,
    )


def normalize_descriptor(group: Mapping[str, Any]) -> Optional[MapDescriptor]:
    """
    Convert one upstream map group into a MapDescriptor.

    Args:
        group: Raw group record with ``normalizedName`` and a ``maps`` array

    Returns:
        MapDescriptor for the interactive variant, or None when the group has
        no interactive variant (callers count this as a skip)

    Raises:
        MissingMapSourceError: Variant has neither svgPath nor tilePath
        MissingMinZoomError / MissingMaxZoomError: Tile source without zoom range
        InvalidRotationError: Rotation is not a number or numeric string
        NormalizationError: Any other malformed required field
    """
    map_name = group.get("normalizedName")
    if not map_name:
        raise NormalizationError("<unknown>", "group has no normalizedName")

    variant = select_interactive(group)
    if variant is None:
        logger.debug(f"Group '{map_name}' has no interactive variant")
        return None

    source = _build_source(variant, map_name)

    try:
        raw_layers = variant.get("layers")
        raw_labels = variant.get("labels")
        return MapDescriptor(
            normalized_name=map_name,
            projection=INTERACTIVE_PROJECTION,
            source=source,
            bounds=variant.get("bounds"),
            coordinate_rotation=parse_rotation(
                variant.get("coordinateRotation"), "coordinateRotation", map_name
            ),
            transform=variant.get("transform"),
            height_range=variant.get("heightRange"),
            layers=[_build_layer(l) for l in raw_layers] if raw_layers is not None else None,
            labels=[_build_label(l, map_name) for l in raw_labels] if raw_labels is not None else None,
            alt_maps=variant.get("altMaps"),
            author=variant.get("author"),
            author_link=variant.get("authorLink"),
        )
    except (ValidationError, AttributeError, TypeError) as e:
        raise NormalizationError(map_name, f"has a malformed field: {e}") from e


def resolve_display_name(map_name: str, names: Mapping[str, str]) -> str:
    """Look up the human-readable name for a map, failing hard if absent."""
    name = names.get(map_name)
    if not name:
        raise MissingMapNameError(map_name)
    return name


def is_player_spawn(sides: Iterable[str], categories: Iterable[str]) -> bool:
    """True for spawns usable by a PMC player (``pmc``/``all`` side, ``player`` category)."""
    return (
        any(side in PLAYER_SPAWN_SIDES for side in sides)
        and PLAYER_SPAWN_CATEGORY in categories
    )


def _position(raw: Any, map_name: str, field: str) -> Optional[tuple]:
    if raw is None:
        return None
    try:
        return (float(raw["x"]), float(raw["y"]), float(raw["z"]))
    except (KeyError, TypeError, ValueError) as e:
        raise NormalizationError(map_name, f"has a malformed {field} position {raw!r}: {e!r}") from e


def _entries(raw_entries: Iterable[Any], map_name: str, kind: str) -> Iterable[Mapping[str, Any]]:
    for raw in raw_entries:
        if not isinstance(raw, dict):
            raise NormalizationError(map_name, f"has a {kind} entry that is not an object: {raw!r}")
        yield raw


def normalize_spawns(raw_spawns: Iterable[Mapping[str, Any]], map_name: str = "<unknown>") -> List[Spawn]:
    """
    Keep only player spawns and convert ``{x, y, z}`` positions to triples.

    This is the only place spawns are filtered; the bundle and the overlay
    code trust the result.

    Raises:
        NormalizationError: An entry or a player spawn position is malformed
    """
    spawns = []
    for raw in _entries(raw_spawns, map_name, "spawn"):
        sides = list(raw.get("sides") or [])
        categories = list(raw.get("categories") or [])
        if not is_player_spawn(sides, categories):
            continue
        position = _position(raw.get("position"), map_name, "spawn")
        if position is None:
            continue
        spawns.append(Spawn(position=position, sides=sides, categories=categories))
    return spawns


def normalize_extracts(raw_extracts: Iterable[Mapping[str, Any]], map_name: str = "<unknown>") -> List[Extract]:
    """Convert raw extracts, dropping entries without a name or faction."""
    extracts = []
    for raw in _entries(raw_extracts, map_name, "extract"):
        name = raw.get("name")
        faction = raw.get("faction")
        if not name or not faction:
            continue
        extracts.append(Extract(
            name=name,
            faction=faction,
            position=_position(raw.get("position"), map_name, f"extract '{name}'"),
        ))
    return extracts
