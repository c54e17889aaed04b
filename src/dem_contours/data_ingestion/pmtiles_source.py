"""
PMTiles raster source

Reads DEM tiles from a local PMTiles archive. The file is memory-mapped
once at startup and shared read-only by all requests.
"""

import gzip
import mmap
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pmtiles.reader import Reader
from pmtiles.tile import Compression, TileType

from ..errors import ConfigurationError
from ..models import TileAddress
from .base_source import WORLD_BOUNDS, RasterSource


RASTER_TILE_TYPES = {TileType.UNKNOWN, TileType.PNG, TileType.JPEG, TileType.WEBP}
SUPPORTED_COMPRESSIONS = {Compression.UNKNOWN, Compression.NONE, Compression.GZIP}


class PMTilesRasterSource(RasterSource):
    """Raster source backed by a single ``.pmtiles`` archive."""

    def __init__(self, path: Union[str, Path], name: Optional[str] = None):
        self.path = Path(path).resolve()
        super().__init__(name or self.path.stem)

        self._file = open(self.path, "rb")
        self._mapping = None
        try:
            self._mapping = mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ)
            self._reader = Reader(self._read_bytes)
            self._header = self._reader.header()
            self._metadata = self._reader.metadata() or {}
        except Exception as e:
            self.close()
            raise ConfigurationError(f"Cannot read PMTiles archive {self.path}: {e}") from e

        self._check_header()

        self.logger.info(
            "Opened PMTiles archive",
            path=str(self.path),
            min_zoom=self.min_zoom,
            max_zoom=self.max_zoom,
            tile_type=self._enum_name(self._header.get("tile_type")),
            tile_compression=self._enum_name(self._header.get("tile_compression"))
        )

    def _check_header(self) -> None:
        tile_type = self._header.get("tile_type", TileType.UNKNOWN)
        compression = self._header.get("tile_compression", Compression.UNKNOWN)

        if tile_type not in RASTER_TILE_TYPES:
            self.close()
            raise ConfigurationError(
                f"{self.path.name} holds {self._enum_name(tile_type)} tiles, not raster DEM tiles"
            )
        if compression not in SUPPORTED_COMPRESSIONS:
            self.close()
            raise ConfigurationError(
                f"{self.path.name} uses unsupported tile compression {self._enum_name(compression)}"
            )

    @staticmethod
    def _enum_name(value) -> str:
        return getattr(value, "name", str(value))

    def _read_bytes(self, offset: int, length: int) -> bytes:
        return self._mapping[offset:offset + length]

    def get(self, z: int, x: int, y: int) -> Optional[bytes]:
        if self._mapping is None or self._mapping.closed:
            raise ValueError(f"PMTiles archive {self.path.name} is closed")
        if not TileAddress(z, x, y).is_valid():
            return None

        data = self._reader.get(z, x, y)
        if data is None:
            return None

        if self._header.get("tile_compression") == Compression.GZIP or data[:2] == b"\x1f\x8b":
            return gzip.decompress(data)
        return bytes(data)

    @property
    def header(self) -> Dict[str, Any]:
        return dict(self._header)

    @property
    def metadata(self) -> Dict[str, Any]:
        return dict(self._metadata)

    @property
    def min_zoom(self) -> int:
        return int(self._header.get("min_zoom", 0))

    @property
    def max_zoom(self) -> int:
        return int(self._header.get("max_zoom", 14))

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        keys = ("min_lon_e7", "min_lat_e7", "max_lon_e7", "max_lat_e7")
        values = [self._header.get(key, 0) for key in keys]
        if not any(values):
            return WORLD_BOUNDS
        return tuple(
            value / 1e7 if value else fallback
            for value, fallback in zip(values, WORLD_BOUNDS)
        )

    @property
    def center(self) -> Tuple[float, float, int]:
        lon, lat, zoom = super().center
        return lon, lat, int(self._header.get("center_zoom") or zoom)

    def close(self) -> None:
        if self._mapping is not None and not self._mapping.closed:
            self._mapping.close()
        if not self._file.closed:
            self._file.close()
