"""
Elevation decoding for RGB-encoded DEM tiles.

Two encodings are supported:

- Terrarium: ``r * 256 + g + b / 256 - 32768``
- Mapbox Terrain-RGB: ``-10000 + (r * 65536 + g * 256 + b) * 0.1``

The vectorised decoder performs the same float64 operations in the same
order as the scalar one, so both produce bit-identical values.
"""

from enum import Enum
from typing import Union

import numpy as np

from ..errors import UnknownEncoding
from ..models import ElevationGrid


class ElevationEncoding(str, Enum):
    TERRARIUM = "terrarium"
    MAPBOX = "mapbox"


def validate_encoding(encoding: Union[str, ElevationEncoding]) -> ElevationEncoding:
    """Normalise an encoding tag, raising UnknownEncoding if unsupported."""
    if isinstance(encoding, ElevationEncoding):
        return encoding
    try:
        return ElevationEncoding(str(encoding).strip().lower())
    except ValueError:
        raise UnknownEncoding(encoding) from None


def decode_elevation(r: int, g: int, b: int, encoding: Union[str, ElevationEncoding]) -> float:
    """Decode one pixel's RGB triple into meters."""
    encoding = validate_encoding(encoding)
    r, g, b = float(r), float(g), float(b)

    if encoding is ElevationEncoding.TERRARIUM:
        return r * 256.0 + g + b / 256.0 - 32768.0
    return -10000.0 + (r * 65536.0 + g * 256.0 + b) * 0.1


def decode_elevation_grid(
    pixels: np.ndarray,
    encoding: Union[str, ElevationEncoding]
) -> ElevationGrid:
    """
    Decode an RGBA pixel array into an elevation grid.

    Args:
        pixels: uint8 array shaped (height, width, 4); alpha is ignored
        encoding: Elevation encoding of the source tiles

    Returns:
        ElevationGrid of float64 values shaped (height, width)
    """
    encoding = validate_encoding(encoding)

    # Cast before any arithmetic, uint8 would wrap around
    rgb = pixels[..., :3].astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    if encoding is ElevationEncoding.TERRARIUM:
        values = r * 256.0 + g + b / 256.0 - 32768.0
    else:
        values = -10000.0 + (r * 65536.0 + g * 256.0 + b) * 0.1

    return ElevationGrid(values=values)


def looks_like_wrong_encoding(min_elevation: float, max_elevation: float) -> bool:
    """
    Heuristic for a tileset decoded with the wrong encoding.

    Real terrain stays between the Mariana Trench and Everest; anything
    far outside that range usually means Terrarium tiles read as Mapbox
    or vice versa.
    """
    return min_elevation < -12000.0 or max_elevation > 9000.0
