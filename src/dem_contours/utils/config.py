"""
Configuration

Settings for the contour tile server, read from environment variables the
same way the tile server has always been configured (``TILE_DIR``, ``PORT``,
``HOST``), plus the contour generation parameters.

Validation happens once, at startup: a bad value raises
``ConfigurationError`` and the server never starts serving.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from uvicorn.config import LOG_LEVELS

from ..errors import ConfigurationError
from ..processing.elevation import ElevationEncoding, validate_encoding


DEFAULT_EXTENT = 4096


@dataclass(frozen=True)
class Config:
    """Immutable server and pipeline configuration."""
    tile_dir: Path = Path("./pmtiles-data")
    host: str = "0.0.0.0"
    port: int = 3000
    encoding: ElevationEncoding = ElevationEncoding.TERRARIUM
    contour_interval: float = 10.0
    major_interval: float = 50.0
    buffer_pixels: int = 1
    extent: int = DEFAULT_EXTENT
    log_level: str = "info"
    log_format: str = "json"

    def __post_init__(self):
        if self.contour_interval <= 0:
            raise ConfigurationError("CONTOUR_INTERVAL must be positive")
        if self.major_interval <= 0:
            raise ConfigurationError("MAJOR_INTERVAL must be positive")
        if self.buffer_pixels < 0:
            raise ConfigurationError("BUFFER_PIXELS must not be negative")
        if self.extent <= 0:
            raise ConfigurationError("TILE_EXTENT must be positive")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid PORT: {self.port}")
        if self.log_format not in ("json", "console"):
            raise ConfigurationError(f"Invalid LOG_FORMAT: {self.log_format}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid LOG_LEVEL: {self.log_level}, expected one of {sorted(LOG_LEVELS)}"
            )

    def with_tile_dir(self, tile_dir) -> "Config":
        return replace(self, tile_dir=Path(tile_dir))


def _number(environ: Mapping[str, str], name: str, default, kind=float):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    tile_dir: Optional[str] = None
) -> Config:
    """
    Build a Config from environment variables.

    Args:
        environ: Mapping to read from, defaults to ``os.environ``
        tile_dir: Optional directory overriding ``TILE_DIR``

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: if any value is malformed or out of range
    """
    if environ is None:
        environ = os.environ

    return Config(
        tile_dir=Path(tile_dir or environ.get("TILE_DIR", "./pmtiles-data")),
        host=environ.get("HOST", "0.0.0.0"),
        port=_number(environ, "PORT", 3000, int),
        encoding=validate_encoding(environ.get("ENCODING", "terrarium")),
        contour_interval=_number(environ, "CONTOUR_INTERVAL", 10.0),
        major_interval=_number(environ, "MAJOR_INTERVAL", 50.0),
        buffer_pixels=_number(environ, "BUFFER_PIXELS", 1, int),
        extent=_number(environ, "TILE_EXTENT", DEFAULT_EXTENT, int),
        log_level=environ.get("LOG_LEVEL", "info").lower(),
        log_format=environ.get("LOG_FORMAT", "json").lower(),
    )
