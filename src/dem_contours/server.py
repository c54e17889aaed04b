"""
Contour Tile Server

A FastAPI server generating vector contour tiles on the fly from raster DEM
tiles stored in PMTiles archives.

Endpoints:
- ``/``                              catalog of tilesets
- ``/{tileset}.json``                TileJSON for one tileset
- ``/{tileset}/{z}/{x}/{y}.mvt``     contour tile
- ``/health``                        liveness and loaded tilesets
- ``/metrics``                       Prometheus metrics
"""

import argparse
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .data_ingestion.base_source import RasterSource
from .data_ingestion.tileset_registry import TilesetRegistry, load_registry
from .errors import ConfigurationError, SourceAbsent
from .models import TileAddress, TileStatus
from .monitoring.metrics import MetricsCollector
from .tile_generation.contour_tile_generator import ContourTileGenerator
from .tile_generation.mvt_encoder import LAYER_NAME
from .utils.config import Config, load_config
from .utils.logging_config import configure_logging


MVT_CONTENT_TYPE = "application/x-protobuf"
DESCRIPTION = "Contour lines generated from DEM data"

logger = structlog.get_logger()


def _tileset_not_found(error: SourceAbsent) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": "Tileset not found",
            "tileset": error.tileset,
            "available": error.available
        }
    )


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def build_tilejson(name: str, source: RasterSource, base_url: str) -> Dict[str, Any]:
    """TileJSON 3.0.0 document describing the contour tiles of a tileset."""
    metadata = source.metadata
    west, south, east, north = source.bounds
    center_lon, center_lat, center_zoom = source.center

    return {
        "tilejson": "3.0.0",
        "name": metadata.get("name") or name,
        "description": DESCRIPTION,
        "version": "1.0.0",
        "scheme": "xyz",
        "tiles": [f"{base_url}/{name}/{{z}}/{{x}}/{{y}}.mvt"],
        "minzoom": source.min_zoom,
        "maxzoom": source.max_zoom,
        "bounds": [west, south, east, north],
        "center": [center_lon, center_lat, center_zoom],
        "vector_layers": [
            {
                "id": LAYER_NAME,
                "description": "Elevation contour lines",
                "minzoom": source.min_zoom,
                "maxzoom": source.max_zoom,
                "fields": {
                    "ele": "Number - Elevation in meters",
                    "level": "Number - 0 for minor contours, 1 for major contours"
                }
            }
        ],
        "attribution": metadata.get("attribution") or ""
    }


def create_app(
    config: Optional[Config] = None,
    registry: Optional[TilesetRegistry] = None,
    metrics: Optional[MetricsCollector] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Server configuration, read from the environment if omitted
        registry: Pre-built tileset registry; loaded from ``config.tile_dir``
            at startup if omitted
        metrics: Metrics collector, a fresh one if omitted

    Returns:
        Configured FastAPI app
    """
    config = config or load_config()
    metrics = metrics or MetricsCollector()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_registry = registry is None
        app.state.registry = registry if registry is not None else load_registry(config.tile_dir)

        logger.info(
            "Starting contour tile server",
            tile_dir=str(config.tile_dir),
            tilesets=app.state.registry.names,
            encoding=config.encoding.value,
            contour_interval=config.contour_interval,
            major_interval=config.major_interval
        )
        yield
        logger.info("Shutting down contour tile server")
        if owns_registry:
            app.state.registry.close()

    app = FastAPI(
        title="DEM Contour Tile Server",
        description="Vector contour tiles generated on demand from raster DEM tiles",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.metrics = metrics
    app.state.generator = ContourTileGenerator.from_config(config, metrics)

    @app.get("/")
    async def catalog(request: Request):
        """List all available tilesets."""
        base_url = _base_url(request)
        registry: TilesetRegistry = request.app.state.registry
        tilesets: List[Dict[str, Any]] = []

        for name, source in registry.items():
            try:
                tilesets.append({
                    "name": name,
                    "tilejson": f"{base_url}/{name}.json",
                    "tiles": f"{base_url}/{name}/{{z}}/{{x}}/{{y}}.mvt",
                    "bounds": list(source.bounds),
                    "minzoom": source.min_zoom,
                    "maxzoom": source.max_zoom,
                    "description": source.metadata.get("description") or DESCRIPTION
                })
            except Exception as e:
                logger.error("Failed to read tileset metadata", tileset=name, error=str(e))
                tilesets.append({
                    "name": name,
                    "error": "Failed to read metadata",
                    "tilejson": f"{base_url}/{name}.json"
                })

        return {"tilesets": tilesets, "count": len(registry)}

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        registry: TilesetRegistry = request.app.state.registry
        return {
            "status": "ok",
            "directory": str(registry.directory) if registry.directory else None,
            "tilesets": registry.names,
            "count": len(registry)
        }

    @app.get("/metrics")
    async def metrics_endpoint(request: Request):
        collector: MetricsCollector = request.app.state.metrics
        return Response(content=collector.export(), media_type=collector.content_type)

    @app.get("/{tileset}.json")
    async def tilejson(tileset: str, request: Request):
        """TileJSON document for one tileset."""
        try:
            source = request.app.state.registry.require(tileset)
        except SourceAbsent as e:
            return _tileset_not_found(e)

        try:
            return build_tilejson(tileset, source, _base_url(request))
        except Exception as e:
            logger.error("Failed to generate TileJSON", tileset=tileset, error=str(e))
            return JSONResponse(status_code=500, content={"error": "Failed to generate TileJSON"})

    @app.get("/{tileset}/{z}/{x}/{y}.mvt")
    async def get_tile(tileset: str, z: int, x: int, y: int, request: Request):
        """
        Serve a contour tile.

        Args:
            tileset: Tileset name
            z: Zoom level
            x: Tile X coordinate
            y: Tile Y coordinate
        """
        try:
            source = request.app.state.registry.require(tileset)
        except SourceAbsent as e:
            return _tileset_not_found(e)

        address = TileAddress(z, x, y)
        if not address.is_valid():
            raise HTTPException(status_code=400, detail="Invalid tile coordinates")

        generator: ContourTileGenerator = request.app.state.generator
        try:
            result = await generator.generate_tile(source, address)
        except Exception as e:
            logger.error(
                "Error processing tile",
                tileset=tileset,
                tile_id=address.tile_id,
                error=str(e),
                exc_info=True
            )
            request.app.state.metrics.increment_counter(
                'contour_tiles_total',
                labels={'tileset': tileset, 'status': 'error'}
            )
            raise HTTPException(status_code=500, detail="Internal server error")

        if result.status is TileStatus.NOT_FOUND:
            raise HTTPException(status_code=404, detail="Tile not found")
        if result.status is TileStatus.EMPTY:
            return Response(status_code=204)

        return Response(content=result.data, media_type=MVT_CONTENT_TYPE)

    return app


def main(argv: Optional[List[str]] = None) -> None:
    """Run the server with uvicorn."""
    parser = argparse.ArgumentParser(description="Serve contour tiles generated from PMTiles DEM archives")
    parser.add_argument("tile_dir", nargs="?", help="Directory containing .pmtiles files (default: $TILE_DIR)")
    args = parser.parse_args(argv)

    try:
        config = load_config(tile_dir=args.tile_dir)
    except ConfigurationError as e:
        parser.error(str(e))

    configure_logging(config.log_level, config.log_format)

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level,
        access_log=True
    )
