#!/usr/bin/env python3
"""
Single contour tile inspection

Generates one contour tile straight from a PMTiles archive, without the
server, and checks the result the way a map client would read it.

Usage:
    python scripts/inspect-tile.py terrain.pmtiles 10 163 395
    ENCODING=mapbox python scripts/inspect-tile.py terrain.pmtiles 10 163 395 --output tile.mvt
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from dem_contours.data_ingestion.pmtiles_source import PMTilesRasterSource
from dem_contours.errors import ContourTileError
from dem_contours.models import TileAddress, TileStatus
from dem_contours.processing.elevation import looks_like_wrong_encoding
from dem_contours.tile_generation.contour_tile_generator import ContourTileGenerator
from dem_contours.tile_generation.validation import summarize_tile
from dem_contours.utils.config import load_config
from dem_contours.utils.logging_config import configure_logging


logger = structlog.get_logger()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate and validate a single contour tile")
    parser.add_argument("archive", type=Path, help="PMTiles archive with raster DEM tiles")
    parser.add_argument("z", type=int)
    parser.add_argument("x", type=int)
    parser.add_argument("y", type=int)
    parser.add_argument("--output", type=Path, help="Write the MVT bytes to this file")
    return parser.parse_args(argv)


async def inspect(args) -> int:
    config = load_config()
    configure_logging(config.log_level, "console")

    source = PMTilesRasterSource(args.archive)
    try:
        west, south, east, north = source.bounds
        logger.info(
            "Archive info",
            zoom_range=(source.min_zoom, source.max_zoom),
            bounds=[west, south, east, north]
        )

        generator = ContourTileGenerator.from_config(config)
        result = await generator.generate_tile(source, TileAddress(args.z, args.x, args.y))
    finally:
        source.close()

    if result.status is TileStatus.NOT_FOUND:
        logger.error("No source tiles at or around this address")
        return 1

    if result.elevation_range and looks_like_wrong_encoding(*result.elevation_range):
        logger.warning(
            "Elevation values seem unusual, try the other ENCODING",
            encoding=config.encoding.value,
            elevation_range=result.elevation_range
        )

    if result.status is TileStatus.EMPTY:
        logger.info("No contours in this tile", elevation_range=result.elevation_range)
        return 0

    if args.output:
        args.output.write_bytes(result.data)
        logger.info("Wrote tile", path=str(args.output), size_bytes=len(result.data))

    summary = summarize_tile(result.data, config.extent)
    print(json.dumps(summary.to_dict(), indent=2))
    return 0 if summary.is_valid else 2


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(inspect(args))
    except ContourTileError as e:
        logger.error("Tile inspection failed", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
