"""
Tile Generation Module

Produces Mapbox Vector Tiles (MVT) holding contour lines:

- Per-request orchestration of the contour pipeline
- Extent rescaling and MVT encoding of the ``contours`` layer
- Inspection of generated tiles
"""

from .contour_tile_generator import ContourTileGenerator
from .mvt_encoder import encode_contour_tile
from .validation import summarize_tile

__all__ = [
    "ContourTileGenerator",
    "encode_contour_tile",
    "summarize_tile"
]
