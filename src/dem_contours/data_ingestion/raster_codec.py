"""Raster codec: compressed PNG/WebP/JPEG bytes to RGBA pixel arrays."""

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import DecodeError
from ..models import RasterTile


def decode_raster_tile(data: bytes) -> RasterTile:
    """
    Decode an image blob into a RasterTile with an alpha channel.

    Raises:
        DecodeError: if the bytes are empty, corrupt, or not an image
    """
    if not data:
        raise DecodeError("Empty raster tile")

    try:
        with Image.open(io.BytesIO(data)) as image:
            pixels = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Cannot decode raster tile: {e}") from e

    return RasterTile(pixels=pixels)
