"""
DEM Contour Tiles

Generates vector contour tiles on demand from raster digital elevation
model tiles. Contours are traced on a tile stitched together with a halo
from its neighbors, so lines continue seamlessly across tile boundaries.
"""

__version__ = "1.0.0"

# Core modules
from . import data_ingestion
from . import processing
from . import tile_generation
from . import monitoring
from . import utils

__all__ = [
    "data_ingestion",
    "processing",
    "tile_generation",
    "monitoring",
    "utils"
]
