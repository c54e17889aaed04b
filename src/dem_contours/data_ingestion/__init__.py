"""
Data Ingestion Module

Reads raster DEM tiles and assembles the buffered neighborhood the contour
pipeline works on:

- PMTiles archive access and the tileset registry
- Image decoding (PNG, WebP, JPEG) into RGBA pixel arrays
- 3x3 neighbor stitching with a neutral fill for missing tiles
"""

from .base_source import RasterSource
from .pmtiles_source import PMTilesRasterSource
from .raster_codec import decode_raster_tile
from .neighbor_assembler import assemble_neighborhood, make_source_fetcher, stitch_tiles
from .tileset_registry import TilesetRegistry, load_registry

__all__ = [
    "RasterSource",
    "PMTilesRasterSource",
    "decode_raster_tile",
    "assemble_neighborhood",
    "make_source_fetcher",
    "stitch_tiles",
    "TilesetRegistry",
    "load_registry"
]
