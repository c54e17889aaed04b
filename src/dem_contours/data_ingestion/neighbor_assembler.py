"""
Neighbor Tile Assembler

Fetches the 3x3 neighborhood around a tile, stitches it into one canvas
and cuts out the center tile plus a small halo. Marching squares leaves
artifacts along grid edges; tracing on the haloed window pushes those
artifacts outside the visible tile, so adjacent tiles line up without any
cross-tile coordination.

Missing neighbors (absent, failed fetch, undecodable, or mismatched size)
are filled with a neutral mid-gray sentinel rather than aborting the
request.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import numpy as np
import structlog

from ..errors import DecodeError
from ..models import NEUTRAL_SENTINEL, RasterTile, StitchedCanvas, TileAddress
from .base_source import RasterSource
from .raster_codec import decode_raster_tile


Offset = Tuple[int, int]
TileFetcher = Callable[[TileAddress], Awaitable[Optional[RasterTile]]]

# Row-major: dy outer, dx inner
NEIGHBOR_OFFSETS: List[Offset] = [(dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1)]

logger = structlog.get_logger(component="NeighborAssembler")


def make_source_fetcher(
    source: RasterSource,
    codec: Callable[[bytes], RasterTile] = decode_raster_tile
) -> TileFetcher:
    """
    Wrap a blocking raster source and codec into an async tile fetcher.

    Reading and decoding run in a worker thread so the nine neighbor
    fetches of one request proceed concurrently.
    """
    def fetch_and_decode(address: TileAddress) -> Optional[RasterTile]:
        data = source.get(address.z, address.x, address.y)
        if data is None:
            return None
        return codec(data)

    async def fetch(address: TileAddress) -> Optional[RasterTile]:
        return await asyncio.to_thread(fetch_and_decode, address)

    return fetch


async def _fetch_or_missing(fetch: TileFetcher, address: TileAddress) -> Optional[RasterTile]:
    """Collapse every fetch outcome to a tile or None."""
    try:
        return await fetch(address)
    except DecodeError as e:
        logger.warning("Undecodable neighbor tile", tile_id=address.tile_id, error=str(e))
    except Exception as e:
        logger.warning(
            "Neighbor tile fetch failed",
            tile_id=address.tile_id,
            error=str(e),
            exc_info=True
        )
    return None


def stitch_tiles(
    tiles: Dict[Offset, Optional[RasterTile]],
    buffer: int = 1
) -> Optional[StitchedCanvas]:
    """
    Composite a 3x3 neighborhood and extract the buffered center window.

    Args:
        tiles: Mapping of (dx, dy) offset to decoded tile or None
        buffer: Halo width in pixels around the center tile

    Returns:
        StitchedCanvas of size (tile_width + 2*buffer, tile_height + 2*buffer),
        or None if every tile is missing
    """
    present = [(offset, tiles.get(offset)) for offset in NEIGHBOR_OFFSETS]
    present = [(offset, tile) for offset, tile in present if tile is not None]
    if not present:
        return None

    reference = present[0][1]
    tile_width, tile_height = reference.width, reference.height

    if buffer < 0 or buffer > min(tile_width, tile_height):
        raise ValueError(
            f"Buffer of {buffer}px does not fit a {tile_width}x{tile_height} tile"
        )

    canvas = np.empty((3 * tile_height, 3 * tile_width, 4), dtype=np.uint8)
    canvas[...] = NEUTRAL_SENTINEL

    placed = 0
    for (dx, dy), tile in present:
        if (tile.width, tile.height) != (tile_width, tile_height):
            logger.warning(
                "Neighbor tile size mismatch, treating as missing",
                offset=(dx, dy),
                expected=(tile_width, tile_height),
                actual=(tile.width, tile.height)
            )
            continue

        top = (dy + 1) * tile_height
        left = (dx + 1) * tile_width
        canvas[top:top + tile_height, left:left + tile_width] = tile.pixels
        placed += 1

    window = canvas[
        tile_height - buffer:2 * tile_height + buffer,
        tile_width - buffer:2 * tile_width + buffer
    ].copy()

    return StitchedCanvas(
        pixels=window,
        tile_width=tile_width,
        tile_height=tile_height,
        buffer=buffer,
        tiles_present=placed
    )


async def assemble_neighborhood(
    center: TileAddress,
    fetch: TileFetcher,
    buffer: int = 1
) -> Optional[StitchedCanvas]:
    """
    Fetch the 3x3 neighborhood of ``center`` and stitch it.

    All nine fetches are issued concurrently and awaited together; each
    outcome collapses to present or missing.

    Returns:
        StitchedCanvas, or None if all nine tiles are missing
    """
    results = await asyncio.gather(*(
        _fetch_or_missing(fetch, center.offset(dx, dy))
        for dx, dy in NEIGHBOR_OFFSETS
    ))
    tiles = dict(zip(NEIGHBOR_OFFSETS, results))

    logger.debug(
        "Fetched neighborhood",
        tile_id=center.tile_id,
        present=sum(tile is not None for tile in results)
    )

    return stitch_tiles(tiles, buffer)
