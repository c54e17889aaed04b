"""
Data model shared by the contour tile pipeline.

All objects here are created and discarded within a single tile request.
Pixel buffers are numpy arrays so the per-pixel work stays vectorised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np


# Mid-gray RGBA used wherever a neighbor tile is missing
NEUTRAL_SENTINEL = (128, 128, 128, 255)


@dataclass(frozen=True)
class TileAddress:
    """Slippy-map XYZ tile address."""
    z: int
    x: int
    y: int

    @property
    def tile_id(self) -> str:
        """Get unique tile identifier."""
        return f"{self.z}/{self.x}/{self.y}"

    def offset(self, dx: int, dy: int) -> "TileAddress":
        return TileAddress(self.z, self.x + dx, self.y + dy)

    def is_valid(self) -> bool:
        """True if the address exists at its zoom level."""
        if self.z < 0:
            return False
        n = 1 << self.z
        return 0 <= self.x < n and 0 <= self.y < n


@dataclass
class RasterTile:
    """Decoded raster tile, ``pixels`` shaped (height, width, 4) RGBA uint8."""
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass
class StitchedCanvas:
    """Center tile plus a ``buffer`` pixel halo taken from its neighbors."""
    pixels: np.ndarray
    tile_width: int
    tile_height: int
    buffer: int
    tiles_present: int = 0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass
class ElevationGrid:
    """Elevation values in meters, shaped (height, width) float64."""
    values: np.ndarray

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def min_elevation(self) -> float:
        return float(self.values.min())

    @property
    def max_elevation(self) -> float:
        return float(self.values.max())


@dataclass
class ContourLevel:
    """
    All isoline rings traced at one threshold.

    Each ring is an (n, 2) float array of (x, y) points in pixel space.
    """
    value: float
    is_major: bool
    rings: List[np.ndarray] = field(default_factory=list)


@dataclass
class TileFeature:
    """One line feature ready for the wire, coordinates in extent space."""
    elevation: int
    is_major: bool
    geometry: List[Tuple[int, int]]

    @property
    def properties(self) -> dict:
        return {"ele": self.elevation, "level": 1 if self.is_major else 0}


class TileStatus(Enum):
    OK = "ok"
    EMPTY = "empty"
    NOT_FOUND = "not_found"


@dataclass
class TileResult:
    """Outcome of one contour tile request."""
    status: TileStatus
    data: bytes = b""
    feature_count: int = 0
    tiles_present: int = 0
    elevation_range: Optional[Tuple[float, float]] = None
