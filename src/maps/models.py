"""Data models for interactive maps and the assets built from them.

Every model serializes with camelCase aliases to match the upstream feed and
the bundle format (``normalizedName``, ``imageSize``, ...), while still
accepting snake_case field names in Python code.
"""

from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Point2 = Tuple[float, float]
Point3 = Tuple[float, float, float]
Bounds = Tuple[Point2, Point2]  # [[maxX, minY], [minX, maxY]]
Transform = Tuple[float, float, float, float]  # [scaleX, marginX, scaleY, marginY]
Size = Tuple[float, float]


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtentBound(CamelModel):
    """Rectangular area inside a layer extent."""

    point1: Point2
    point2: Point2
    name: str = ""


class Extent(CamelModel):
    """Height range (and optional areas) that make a layer visible."""

    height: Point2
    bounds: Optional[List[ExtentBound]] = None


class Layer(CamelModel):
    """A map layer such as a floor or an underground area."""

    name: str
    svg_layer: Optional[str] = None
    tile_path: Optional[str] = None
    show: bool = False
    extents: List[Extent] = []


class Label(CamelModel):
    """Static text anchored at a game position."""

    position: Point2
    text: str
    rotation: Optional[float] = None
    size: Optional[int] = None
    top: Optional[float] = None
    bottom: Optional[float] = None


class Spawn(CamelModel):
    """Player spawn point. Position is ``[x, y, z]`` with ``y`` as height."""

    position: Point3
    sides: List[str]
    categories: List[str]


class Extract(CamelModel):
    """Extraction point usable by ``pmc``, ``scav`` or ``shared`` factions."""

    name: str
    faction: str
    position: Optional[Point3] = None


class SvgSource(CamelModel):
    """Map rendered from a single SVG document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["svg"] = "svg"
    url: str


class TileSource(CamelModel):
    """Map rendered from a ``{z}/{x}/{y}`` tile pyramid."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tiles"] = "tiles"
    url_template: str
    tile_size: int = 256
    min_zoom: int
    max_zoom: int


MapSource = Annotated[Union[SvgSource, TileSource], Field(discriminator="kind")]


class MapDescriptor(CamelModel):
    """Strict form of the interactive variant of one upstream map group."""

    normalized_name: str
    projection: str = "interactive"
    source: MapSource
    bounds: Optional[Bounds] = None
    coordinate_rotation: Optional[float] = None
    transform: Optional[Transform] = None
    height_range: Optional[Point2] = None
    layers: Optional[List[Layer]] = None
    labels: Optional[List[Label]] = None
    alt_maps: Optional[List[str]] = None
    author: Optional[str] = None
    author_link: Optional[str] = None


class RasterAsset(CamelModel):
    """A raster produced for one map.

    Attributes:
        path: Bundle-relative identifier (``maps/<normalized_name>.png``)
        image_size: Source coordinate size the raster covers (SVG document
            size, or ``tile_size`` square for tile pyramids)
        pixel_size: Native dimensions of the file on disk
    """

    model_config = ConfigDict(frozen=True)

    path: str
    image_size: Size
    pixel_size: Size


class Map(CamelModel):
    """A bundle record: geometry, raster metadata and enrichment for one map."""

    normalized_name: str
    name: str
    image_path: str
    image_size: Size
    pixel_size: Size
    logical_size: Size
    alt_maps: Optional[List[str]] = None
    author: Optional[str] = None
    author_link: Optional[str] = None
    transform: Optional[Transform] = None
    coordinate_rotation: Optional[float] = None
    bounds: Optional[Bounds] = None
    height_range: Optional[Point2] = None
    layers: Optional[List[Layer]] = None
    labels: Optional[List[Label]] = None
    spawns: Optional[List[Spawn]] = None
    extracts: Optional[List[Extract]] = None


class PlayerPosition(BaseModel):
    """Player location reported by the external position sensor.

    Attributes:
        position: ``[x, y, z]`` game coordinates, ``y`` is height
        yaw: Facing direction in radians
    """

    model_config = ConfigDict(frozen=True)

    position: Point3
    yaw: float = 0.0
