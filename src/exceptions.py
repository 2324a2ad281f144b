"""Centralized exception hierarchy for the map asset builder.

Usage:
    from exceptions import HttpStatusError, MissingMapNameError

    raise HttpStatusError("tile", 404)
    raise MissingMapNameError("customs")
"""

from typing import Optional


class MapAssetError(Exception):
    """Base exception for all map asset builder errors."""
    pass


class FetchError(MapAssetError):
    """Raised when a network request fails at the transport level.

    Examples:
        - Connection refused
        - Request timeout
    """

    def __init__(self, resource: str, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"failed to fetch {resource}: {reason}")


class HttpStatusError(MapAssetError):
    """Raised when a remote resource answers with a non-2xx status."""

    def __init__(self, resource: str, status: int):
        self.resource = resource
        self.status = status
        super().__init__(f"failed to fetch {resource}: HTTP {status}")


class GraphQLError(MapAssetError):
    """Raised when the enrichment API reports errors or returns no data."""
    pass


class DecodeError(MapAssetError):
    """Raised when downloaded content cannot be decoded."""
    pass


class SvgParseError(DecodeError):
    """Raised when an SVG map source is malformed."""
    pass


class TileDecodeError(DecodeError):
    """Raised when a downloaded tile is not a readable raster image."""
    pass


class NormalizationError(MapAssetError):
    """Raised when a map descriptor cannot be normalized.

    Examples:
        - Missing display name
        - Missing source URL
        - Unparseable rotation value
    """

    def __init__(self, map_name: str, message: str):
        self.map_name = map_name
        super().__init__(f"map '{map_name}' {message}")


class MissingMapNameError(NormalizationError):
    """The enrichment dataset has no display name for the map."""

    def __init__(self, map_name: str):
        super().__init__(map_name, "has no human-readable name")


class MissingMapSourceError(NormalizationError):
    """The interactive variant carries neither svgPath nor tilePath."""

    def __init__(self, map_name: str):
        super().__init__(map_name, "has no svgPath or tilePath")


class MissingMinZoomError(NormalizationError):
    def __init__(self, map_name: str):
        super().__init__(map_name, "is missing minZoom")


class MissingMaxZoomError(NormalizationError):
    def __init__(self, map_name: str):
        super().__init__(map_name, "is missing maxZoom")


class InvalidRotationError(NormalizationError):
    """A rotation field is neither a number nor a numeric string."""

    def __init__(self, map_name: str, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(map_name, f"has invalid {field}: {value!r}")


class CacheError(MapAssetError):
    """Raised when a cached raster cannot be read or written."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"raster cache error for {path}: {reason}")


class BundleWriteError(MapAssetError):
    """Raised when the output bundle cannot be serialized or written."""
    pass


class BundleNotFoundError(MapAssetError):
    """Raised when a bundle file does not exist."""
    pass


class BundleFormatError(MapAssetError):
    """Raised when a bundle file cannot be parsed into map records."""
    pass


class ConfigurationError(MapAssetError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Negative tile zoom offset
        - Assets directory is not a directory
    """

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)
