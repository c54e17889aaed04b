"""
Contour MVT encoder

Rescales tile-local pixel coordinates into the vector tile's integer
extent and serialises every ring as a LineString feature in a single
``contours`` layer. Geometry extending past the tile edge is encoded as
is; MVT clients expect buffered geometry.
"""

import math
from typing import List, Sequence

import mapbox_vector_tile
import numpy as np
from mapbox_vector_tile.Mapbox import vector_tile_pb2
from shapely.geometry import LineString

from ..errors import EncodingFault
from ..models import ContourLevel, TileFeature


LAYER_NAME = "contours"
DEFAULT_EXTENT = 4096


def round_half_up(value: float) -> int:
    """Round halves up, the way JavaScript's Math.round does."""
    return int(math.floor(value + 0.5))


def build_tile_features(
    levels: Sequence[ContourLevel],
    tile_width: int,
    tile_height: int,
    extent: int = DEFAULT_EXTENT
) -> List[TileFeature]:
    """
    Convert contour levels in tile-local pixel space to extent-space features.

    Raises:
        EncodingFault: if the tile size is not positive or a ring is not a
            finite (n, 2) coordinate array
    """
    if tile_width <= 0 or tile_height <= 0:
        raise EncodingFault(f"Invalid tile size {tile_width}x{tile_height}")

    size = np.array([tile_width, tile_height], dtype=np.float64)
    features = []

    for level in levels:
        elevation = round_half_up(level.value)

        for ring in level.rings:
            points = np.asarray(ring, dtype=np.float64)
            if points.ndim != 2 or points.shape[1] != 2:
                raise EncodingFault(f"Malformed ring of shape {points.shape} at level {level.value}")
            if not np.isfinite(points).all():
                raise EncodingFault(f"Non-finite coordinates at level {level.value}")
            if len(points) < 2:
                continue

            scaled = np.floor(points / size * extent + 0.5).astype(np.int64)
            # Nearby points can round onto the same extent coordinate
            keep = np.ones(len(scaled), dtype=bool)
            keep[1:] = (scaled[1:] != scaled[:-1]).any(axis=1)
            scaled = scaled[keep]
            if len(scaled) < 2:
                continue

            features.append(TileFeature(
                elevation=elevation,
                is_major=level.is_major,
                geometry=[(int(x), int(y)) for x, y in scaled]
            ))

    return features


def encode_features(features: Sequence[TileFeature], extent: int = DEFAULT_EXTENT) -> bytes:
    """Serialise features into the ``contours`` layer; empty input gives b''."""
    if not features:
        return b""

    layer = {
        "name": LAYER_NAME,
        "features": [
            {
                "id": index,
                "geometry": LineString(feature.geometry),
                "properties": feature.properties,
            }
            for index, feature in enumerate(features, start=1)
        ],
    }

    try:
        data = mapbox_vector_tile.encode(
            layer,
            default_options={"extents": extent, "y_coord_down": True}
        )
        return _sign_typed_integers(data)
    except Exception as e:
        raise EncodingFault(f"MVT encoding failed: {e}") from e


def _sign_typed_integers(data: bytes) -> bytes:
    """
    Store integer attributes as ``uint_value`` or ``sint_value``.

    mapbox_vector_tile writes every integer as ``int_value``. Tiles from
    vt-pbf, which most MVT clients are tested against, use unsigned values
    for non-negative integers and zigzag-encoded values for negative ones.
    """
    tile = vector_tile_pb2.tile()
    tile.ParseFromString(data)
    for layer in tile.layers:
        for value in layer.values:
            if not value.HasField("int_value"):
                continue
            number = value.int_value
            value.ClearField("int_value")
            if number < 0:
                value.sint_value = number
            else:
                value.uint_value = number
    return tile.SerializeToString()


def encode_contour_tile(
    levels: Sequence[ContourLevel],
    tile_width: int,
    tile_height: int,
    extent: int = DEFAULT_EXTENT
) -> bytes:
    """
    Encode contour levels as one MVT tile.

    Args:
        levels: Contour levels with rings in tile-local pixel coordinates
        tile_width: Width of the source tile in pixels
        tile_height: Height of the source tile in pixels
        extent: Integer extent of the vector tile

    Returns:
        MVT bytes, or b'' when there are no features
    """
    features = build_tile_features(levels, tile_width, tile_height, extent)
    return encode_features(features, extent)
