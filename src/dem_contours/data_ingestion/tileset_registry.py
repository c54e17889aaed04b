"""
Tileset registry

Maps tileset names to raster sources. Built once at startup, then only
read; request handlers receive it by reference.
"""

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Union

import structlog

from ..errors import ConfigurationError, SourceAbsent
from .base_source import RasterSource
from .pmtiles_source import PMTilesRasterSource


logger = structlog.get_logger(component="TilesetRegistry")


class TilesetRegistry(Mapping):
    """Read-only name -> RasterSource mapping."""

    def __init__(self, sources: Mapping[str, RasterSource], directory: Union[str, Path, None] = None):
        self._sources = MappingProxyType(dict(sources))
        self.directory = Path(directory) if directory is not None else None

    def __getitem__(self, name: str) -> RasterSource:
        return self._sources[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    @property
    def names(self) -> List[str]:
        return list(self._sources)

    def require(self, name: str) -> RasterSource:
        """Look up a tileset, raising SourceAbsent if it is not registered."""
        try:
            return self._sources[name]
        except KeyError:
            raise SourceAbsent(name, self.names) from None

    def close(self) -> None:
        for source in self._sources.values():
            try:
                source.close()
            except Exception as e:
                logger.error("Failed to close tileset", tileset=source.name, error=str(e))


def load_registry(directory: Union[str, Path]) -> TilesetRegistry:
    """
    Open every ``.pmtiles`` archive in a directory.

    Each archive is registered under its file stem, e.g.
    ``terrain.pmtiles`` becomes tileset ``terrain``.

    Raises:
        ConfigurationError: if the directory is missing, holds no archives,
            or an archive cannot be opened
    """
    directory = Path(directory).resolve()
    if not directory.is_dir():
        raise ConfigurationError(f"{directory} is not a directory")

    paths = sorted(
        path for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() == ".pmtiles"
    )
    if not paths:
        raise ConfigurationError(f"No .pmtiles files found in {directory}")

    sources: Dict[str, RasterSource] = {}
    try:
        for path in paths:
            source = PMTilesRasterSource(path)
            sources[source.name] = source
            logger.info("Loaded tileset", tileset=source.name, file=path.name)
    except ConfigurationError:
        for source in sources.values():
            source.close()
        raise

    return TilesetRegistry(sources, directory)
