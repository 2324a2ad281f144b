"""Game-to-display coordinate projection and overlay placement."""

from .coordinates import DisplayRect, game_to_display, ground_position, rotate_point
from .overlays import OverlayVisibility, place_overlays

__all__ = [
    "DisplayRect",
    "game_to_display",
    "ground_position",
    "rotate_point",
    "OverlayVisibility",
    "place_overlays",
]
