"""Convert game-world coordinates to positions on a map raster.

The upstream data was authored for a Leaflet-based web renderer, and this
module reproduces its placement exactly:

1. Rotate the game point about the origin by the map's ``coordinateRotation``.
2. For 270° maps that carry a ``transform``, apply the affine transform
   (with the Y scale negated) and normalize by the map's image size.
3. Otherwise normalize the rotated point within the bounding box of the
   rotated ``bounds`` corners, with Y inverted (image rows grow downward).

Usage:
    rect = DisplayRect(0, 0, 800, 600)
    pos = game_to_display(map_record, rect, ground_position(spawn.position))
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from maps.models import Map

AFFINE_ROTATION = 270.0


@dataclass(frozen=True)
class DisplayRect:
    """Axis-aligned rectangle the full raster is drawn into."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def expand(self, margin: float) -> "DisplayRect":
        return DisplayRect(
            self.min_x - margin,
            self.min_y - margin,
            self.max_x + margin,
            self.max_y + margin,
        )

    def contains(self, point: Tuple[float, float]) -> bool:
        x, y = point
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def rotate_point(x: float, y: float, angle_deg: float) -> Tuple[float, float]:
    """Rotate ``(x, y)`` about the origin by ``angle_deg`` degrees."""
    if angle_deg == 0.0:
        return x, y
    angle = math.radians(angle_deg)
    sin, cos = math.sin(angle), math.cos(angle)
    return x * cos - y * sin, x * sin + y * cos


def ground_position(position: Sequence[float]) -> Tuple[float, float]:
    """Project a ``[x, y, z]`` game position onto the map plane (``y`` is height)."""
    return position[0], position[2]


def _to_rect(rect: DisplayRect, frac_x: float, frac_y: float) -> Tuple[float, float]:
    return rect.min_x + frac_x * rect.width, rect.min_y + frac_y * rect.height


def game_to_display(
    map_record: Map,
    rect: DisplayRect,
    game_pos: Sequence[float]
) -> Optional[Tuple[float, float]]:
    """
    Place a 2D game position inside ``rect``.

    Args:
        map_record: Map with ``bounds``, ``coordinate_rotation``, ``transform``
            and ``image_size``
        rect: Display rectangle representing the full raster
        game_pos: ``(x, y)`` on the map plane (see ``ground_position``)

    Returns:
        ``(x, y)`` display position, or None when the map has no bounds or
        its bounds (or image size, on the affine path) have zero extent
    """
    bounds = map_record.bounds
    if bounds is None:
        return None

    rotation = map_record.coordinate_rotation or 0.0
    rotated_x, rotated_y = rotate_point(game_pos[0], game_pos[1], rotation)

    transform = map_record.transform
    if rotation == AFFINE_ROTATION and transform is not None:
        scale_x, margin_x, scale_y, margin_y = transform
        svg_x = scale_x * rotated_x + margin_x
        svg_y = -scale_y * rotated_y + margin_y
        image_w, image_h = map_record.image_size
        if image_w == 0 or image_h == 0:
            return None
        return _to_rect(rect, svg_x / image_w, svg_y / image_h)

    (max_x, min_y), (min_x, max_y) = bounds
    corners = [
        rotate_point(max_x, min_y, rotation),
        rotate_point(max_x, max_y, rotation),
        rotate_point(min_x, min_y, rotation),
        rotate_point(min_x, max_y, rotation),
    ]
    xs = [c[0] for c in corners]
    ys = [c[1] for c in corners]
    rotated_min_x, rotated_max_x = min(xs), max(xs)
    rotated_min_y, rotated_max_y = min(ys), max(ys)
    if math.isclose(rotated_max_x, rotated_min_x, abs_tol=1e-9) or \
            math.isclose(rotated_max_y, rotated_min_y, abs_tol=1e-9):
        return None

    frac_x = (rotated_x - rotated_min_x) / (rotated_max_x - rotated_min_x)
    # Y inverted
    frac_y = (rotated_max_y - rotated_y) / (rotated_max_y - rotated_min_y)
    return _to_rect(rect, frac_x, frac_y)
