"""
Base Raster Source

Interface every DEM tile store implements. A source answers "give me the
compressed bytes of tile z/x/y" and must distinguish absence (``None``)
from genuine I/O failure (an exception).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import structlog


# Web Mercator latitude limit used when an archive carries no bounds
WORLD_BOUNDS = (-180.0, -85.0511, 180.0, 85.0511)


class RasterSource(ABC):
    """
    Abstract base class for raster DEM tile stores.

    Subclasses provide byte retrieval and descriptive metadata; the
    contour pipeline only ever calls ``get``.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = structlog.get_logger(
            source_type=self.__class__.__name__,
            tileset=name
        )

    @abstractmethod
    def get(self, z: int, x: int, y: int) -> Optional[bytes]:
        """
        Fetch the compressed raster bytes for a tile.

        Args:
            z: Zoom level
            x: Tile X coordinate
            y: Tile Y coordinate

        Returns:
            Tile bytes, or None if the tile does not exist
        """
        pass

    @property
    def min_zoom(self) -> int:
        return 0

    @property
    def max_zoom(self) -> int:
        return 14

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(west, south, east, north) in degrees."""
        return WORLD_BOUNDS

    @property
    def center(self) -> Tuple[float, float, int]:
        """(lon, lat, zoom) suggested for clients."""
        west, south, east, north = self.bounds
        return (
            (west + east) / 2,
            (south + north) / 2,
            (self.min_zoom + self.max_zoom) // 2
        )

    @property
    def metadata(self) -> Dict[str, Any]:
        return {}

    def close(self) -> None:
        """Release any held resources."""
        pass
