"""
Error taxonomy for contour tile generation.

Per-tile problems (missing or undecodable neighbors) degrade locally and
never surface through these exceptions to the caller; only structural
failures do.
"""


class ContourTileError(Exception):
    """Base class for all contour tile errors."""


class ConfigurationError(ContourTileError, ValueError):
    """Invalid startup configuration. The server must not serve traffic."""


class UnknownEncoding(ConfigurationError):
    """Elevation encoding tag is neither ``terrarium`` nor ``mapbox``."""

    def __init__(self, encoding):
        super().__init__(f"Unknown encoding: {encoding}")
        self.encoding = encoding


class SourceAbsent(ContourTileError, LookupError):
    """Requested tileset is not registered."""

    def __init__(self, tileset, available=()):
        super().__init__(f"Tileset not found: {tileset}")
        self.tileset = tileset
        self.available = list(available)


class DecodeError(ContourTileError):
    """Raster codec could not parse a fetched tile."""


class EncodingFault(ContourTileError):
    """Malformed geometry reached the vector tile encoder."""
