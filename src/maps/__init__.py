"""Map descriptors: models, upstream feed client and normalization."""

from .models import (
    Extent,
    ExtentBound,
    Extract,
    Label,
    Layer,
    Map,
    MapDescriptor,
    PlayerPosition,
    RasterAsset,
    Spawn,
    SvgSource,
    TileSource,
)

__all__ = [
    "Extent",
    "ExtentBound",
    "Extract",
    "Label",
    "Layer",
    "Map",
    "MapDescriptor",
    "PlayerPosition",
    "RasterAsset",
    "Spawn",
    "SvgSource",
    "TileSource",
]
