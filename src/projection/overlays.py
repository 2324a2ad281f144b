"""Place map overlays (labels, spawns, extracts, player) in display space.

These functions decide *where* and *how large* each marker is; drawing is left
to the viewer. Every placement goes through ``game_to_display`` and markers
that fall too far outside the display rectangle are culled.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from maps.models import Extract, Label, Map, PlayerPosition, Spawn
from projection.coordinates import DisplayRect, game_to_display, ground_position

LABEL_MARGIN = 50.0
SPAWN_MARGIN = 20.0
EXTRACT_MARGIN = 20.0
PLAYER_MARGIN = 50.0

DEFAULT_LABEL_SIZE = 40


class OverlayVisibility(BaseModel):
    """Which overlay kinds the viewer shows."""

    labels: bool = False
    spawns: bool = True
    pmc_extracts: bool = True
    scav_extracts: bool = True
    shared_extracts: bool = True
    player_marker: bool = True

    def shows_faction(self, faction: str) -> bool:
        return {
            "pmc": self.pmc_extracts,
            "scav": self.scav_extracts,
            "shared": self.shared_extracts,
        }.get(faction.lower(), False)


@dataclass(frozen=True)
class LabelMarker:
    position: Tuple[float, float]
    text: str
    font_size: float


@dataclass(frozen=True)
class SpawnMarker:
    position: Tuple[float, float]
    radius: float


@dataclass(frozen=True)
class ExtractMarker:
    position: Tuple[float, float]
    name: str
    faction: str
    size: float


@dataclass(frozen=True)
class PlayerMarker:
    """Player dot plus facing direction.

    ``heading`` is in radians, already corrected for the map's coordinate
    rotation; 0 points up the display.
    """

    position: Tuple[float, float]
    heading: float
    radius: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _place(
    map_record: Map,
    rect: DisplayRect,
    game_pos: Sequence[float],
    margin: float
) -> Optional[Tuple[float, float]]:
    pos = game_to_display(map_record, rect, game_pos)
    if pos is None or not rect.expand(margin).contains(pos):
        return None
    return pos


def place_labels(map_record: Map, rect: DisplayRect, labels: Sequence[Label], zoom: float) -> List[LabelMarker]:
    markers = []
    for label in labels:
        pos = _place(map_record, rect, label.position, LABEL_MARGIN)
        if pos is None:
            continue
        base_size = (label.size if label.size is not None else DEFAULT_LABEL_SIZE) * 0.15
        markers.append(LabelMarker(pos, label.text, _clamp(base_size * zoom, 8.0, 48.0)))
    return markers


def place_spawns(map_record: Map, rect: DisplayRect, spawns: Sequence[Spawn], zoom: float) -> List[SpawnMarker]:
    markers = []
    for spawn in spawns:
        pos = _place(map_record, rect, ground_position(spawn.position), SPAWN_MARGIN)
        if pos is None:
            continue
        markers.append(SpawnMarker(pos, _clamp(4.0 * zoom, 3.0, 12.0)))
    return markers


def place_extracts(
    map_record: Map,
    rect: DisplayRect,
    extracts: Sequence[Extract],
    zoom: float,
    visibility: OverlayVisibility
) -> List[ExtractMarker]:
    """Place extracts whose faction is visible; extracts without a position are skipped."""
    markers = []
    for extract in extracts:
        if not visibility.shows_faction(extract.faction) or extract.position is None:
            continue
        pos = _place(map_record, rect, ground_position(extract.position), EXTRACT_MARGIN)
        if pos is None:
            continue
        markers.append(ExtractMarker(
            pos,
            extract.name,
            extract.faction.lower(),
            _clamp(12.0 * zoom, 8.0, 32.0),
        ))
    return markers


def place_player_marker(
    map_record: Map,
    rect: DisplayRect,
    player: PlayerPosition,
    zoom: float
) -> Optional[PlayerMarker]:
    pos = _place(map_record, rect, ground_position(player.position), PLAYER_MARGIN)
    if pos is None:
        return None
    rotation = map_record.coordinate_rotation or 0.0
    heading = player.yaw - math.radians(rotation)
    return PlayerMarker(pos, heading, _clamp(8.0 * zoom, 6.0, 16.0))


def place_overlays(
    map_record: Map,
    rect: DisplayRect,
    zoom: float,
    visibility: Optional[OverlayVisibility] = None,
    player: Optional[PlayerPosition] = None
) -> dict:
    """
    Place every visible overlay of a map.

    Returns:
        Dict with ``labels``, ``spawns``, ``extracts`` lists and ``player``
        (a PlayerMarker or None)
    """
    visibility = visibility or OverlayVisibility()
    return {
        "labels": place_labels(map_record, rect, map_record.labels or [], zoom) if visibility.labels else [],
        "spawns": place_spawns(map_record, rect, map_record.spawns or [], zoom) if visibility.spawns else [],
        "extracts": place_extracts(map_record, rect, map_record.extracts or [], zoom, visibility),
        "player": (
            place_player_marker(map_record, rect, player, zoom)
            if player is not None and visibility.player_marker else None
        ),
    }
