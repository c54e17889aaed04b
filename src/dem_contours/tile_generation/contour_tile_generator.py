"""
Contour Tile Generator

Turns one raster DEM tile address into one MVT contour tile:

- Stitches the 3x3 neighborhood into a buffered canvas
- Decodes RGB pixels to elevations
- Plans contour levels from the elevation range
- Traces isolines with marching squares and classifies major/minor levels
- Translates rings back to tile-local space and encodes them as MVT

Requests share nothing but the read-only raster source; all buffers are
owned by the request that created them.
"""

import asyncio
import time
from typing import List, Optional

import structlog

from ..data_ingestion.base_source import RasterSource
from ..data_ingestion.neighbor_assembler import (
    TileFetcher,
    assemble_neighborhood,
    make_source_fetcher,
)
from ..models import (
    ContourLevel,
    ElevationGrid,
    StitchedCanvas,
    TileAddress,
    TileResult,
    TileStatus,
)
from ..monitoring.metrics import MetricsCollector
from ..processing.elevation import (
    ElevationEncoding,
    decode_elevation_grid,
    looks_like_wrong_encoding,
    validate_encoding,
)
from ..processing.isolines import (
    IsolineBackend,
    extract_isolines,
    marching_squares,
    translate_levels,
)
from ..processing.thresholds import plan_thresholds
from ..utils.config import Config
from .mvt_encoder import DEFAULT_EXTENT, build_tile_features, encode_features


class ContourTileGenerator:
    """
    On-demand contour tile generator for RGB-encoded DEM tilesets.
    """

    def __init__(
        self,
        encoding=ElevationEncoding.TERRARIUM,
        contour_interval: float = 10.0,
        major_interval: float = 50.0,
        buffer_pixels: int = 1,
        extent: int = DEFAULT_EXTENT,
        metrics: Optional[MetricsCollector] = None,
        backend: IsolineBackend = marching_squares
    ):
        """
        Initialize the contour tile generator.

        Args:
            encoding: Elevation encoding of the source tiles
            contour_interval: Spacing between minor contour levels (m)
            major_interval: Spacing between major contour levels (m)
            buffer_pixels: Halo taken from neighbor tiles
            extent: Integer extent of the produced vector tiles
            metrics: Optional metrics collector
            backend: Isoline extraction implementation
        """
        self.encoding = validate_encoding(encoding)
        self.contour_interval = contour_interval
        self.major_interval = major_interval
        self.buffer_pixels = buffer_pixels
        self.extent = extent
        self.metrics = metrics
        self.backend = backend

        self.logger = structlog.get_logger(
            generator_type="ContourTileGenerator",
            encoding=self.encoding.value
        )

    @classmethod
    def from_config(cls, config: Config, metrics: Optional[MetricsCollector] = None) -> "ContourTileGenerator":
        return cls(
            encoding=config.encoding,
            contour_interval=config.contour_interval,
            major_interval=config.major_interval,
            buffer_pixels=config.buffer_pixels,
            extent=config.extent,
            metrics=metrics
        )

    async def generate_tile(
        self,
        source: RasterSource,
        address: TileAddress,
        fetch: Optional[TileFetcher] = None
    ) -> TileResult:
        """
        Generate the contour tile for ``address``.

        Args:
            source: Raster source the tile belongs to
            address: Tile to generate
            fetch: Optional fetcher overriding the source's default one

        Returns:
            TileResult with status OK, EMPTY or NOT_FOUND

        Raises:
            EncodingFault: if malformed geometry reaches the encoder
        """
        start_time = time.perf_counter()
        fetch = fetch or make_source_fetcher(source)

        canvas = await assemble_neighborhood(address, fetch, self.buffer_pixels)
        self._record_neighbors(canvas)

        if canvas is None:
            self.logger.info("No source tiles in neighborhood", tileset=source.name, tile_id=address.tile_id)
            result = TileResult(status=TileStatus.NOT_FOUND)
        else:
            # CPU bound, keep it off the event loop
            result = await asyncio.to_thread(self.render_canvas, canvas, address)

        self._record_result(source.name, result, time.perf_counter() - start_time)
        return result

    def render_canvas(self, canvas: StitchedCanvas, address: Optional[TileAddress] = None) -> TileResult:
        """Run decoding, contouring and encoding on a stitched canvas."""
        grid = decode_elevation_grid(canvas.pixels, self.encoding)
        elevation_range = (grid.min_elevation, grid.max_elevation)
        self._check_elevation_range(grid, canvas, address)

        levels = self.extract_levels(grid)
        levels = translate_levels(levels, canvas.buffer)

        features = build_tile_features(levels, canvas.tile_width, canvas.tile_height, self.extent)
        data = encode_features(features, self.extent)

        self.logger.info(
            "Generated contour tile",
            tile_id=address.tile_id if address else None,
            tiles_present=canvas.tiles_present,
            canvas=(canvas.width, canvas.height),
            min_elevation=round(elevation_range[0], 1),
            max_elevation=round(elevation_range[1], 1),
            levels=len(levels),
            features=len(features),
            size_bytes=len(data)
        )

        return TileResult(
            status=TileStatus.OK if data else TileStatus.EMPTY,
            data=data,
            feature_count=len(features),
            tiles_present=canvas.tiles_present,
            elevation_range=elevation_range
        )

    def extract_levels(self, grid: ElevationGrid) -> List[ContourLevel]:
        """Plan thresholds for the grid and trace every level that crosses it."""
        thresholds = plan_thresholds(grid.min_elevation, grid.max_elevation, self.contour_interval)
        return extract_isolines(grid, thresholds, self.major_interval, self.backend)

    def _check_elevation_range(
        self,
        grid: ElevationGrid,
        canvas: StitchedCanvas,
        address: Optional[TileAddress]
    ) -> None:
        # Only the center tile, the halo may be sentinel fill
        b = canvas.buffer
        center = grid.values[b:b + canvas.tile_height, b:b + canvas.tile_width]
        low, high = float(center.min()), float(center.max())
        if looks_like_wrong_encoding(low, high):
            self.logger.warning(
                "Elevation range looks wrong, check ENCODING",
                tile_id=address.tile_id if address else None,
                min_elevation=low,
                max_elevation=high
            )

    def _record_neighbors(self, canvas: Optional[StitchedCanvas]) -> None:
        if self.metrics is None:
            return
        present = canvas.tiles_present if canvas else 0
        self.metrics.increment_counter('neighbor_tiles_total', present, {'status': 'present'})
        self.metrics.increment_counter('neighbor_tiles_total', 9 - present, {'status': 'missing'})

    def _record_result(self, tileset: str, result: TileResult, duration: float) -> None:
        if self.metrics is None:
            return
        self.metrics.increment_counter(
            'contour_tiles_total',
            labels={'tileset': tileset, 'status': result.status.value}
        )
        self.metrics.record_histogram(
            'contour_tile_duration_seconds',
            duration,
            {'tileset': tileset}
        )
