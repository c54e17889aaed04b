"""
Isoline extraction and coordinate translation.

Marching squares is delegated to scikit-image. Rings come back in canvas
pixel space where the center of pixel ``(col, row)`` sits at
``(col + 0.5, row + 0.5)``; translating by the buffer width maps them into
the center tile's own pixel space, where ``[0, tile_width]`` spans the tile.
"""

from typing import Callable, Iterable, List, Sequence

import numpy as np
from skimage import measure

from ..models import ContourLevel, ElevationGrid
from .thresholds import is_major_level


IsolineBackend = Callable[[np.ndarray, float], List[np.ndarray]]

PIXEL_CENTER = 0.5


def marching_squares(values: np.ndarray, threshold: float) -> List[np.ndarray]:
    """
    Trace the isolines of ``values`` at ``threshold``.

    A vertex counts as inside when ``value >= threshold``. scikit-image
    treats only ``value > level`` as inside, so the field and the level are
    negated; the interpolated crossing positions are unchanged.

    Returns:
        List of (n, 2) arrays of (x, y) points, open where a line meets the
        grid edge and closed otherwise
    """
    if min(values.shape) < 2:
        return []

    rings = []
    for contour in measure.find_contours(-values, -threshold):
        # find_contours yields (row, col)
        ring = contour[:, ::-1] + PIXEL_CENTER
        rings.append(np.ascontiguousarray(ring, dtype=np.float64))
    return rings


def extract_isolines(
    grid: ElevationGrid,
    thresholds: Iterable[float],
    major_interval: float,
    backend: IsolineBackend = marching_squares
) -> List[ContourLevel]:
    """
    Extract one ContourLevel per threshold that crosses the grid.

    Levels are classified major/minor as they are produced. Thresholds
    without any crossing are left out.
    """
    levels = []
    for threshold in thresholds:
        rings = backend(grid.values, threshold)
        if not rings:
            continue
        levels.append(ContourLevel(
            value=threshold,
            is_major=is_major_level(threshold, major_interval),
            rings=rings
        ))
    return levels


def translate_rings(rings: Sequence[np.ndarray], buffer: int) -> List[np.ndarray]:
    """
    Shift rings from buffered-canvas space into tile-local space.

    Coordinates are never clamped: points in the halo end up slightly
    outside ``[0, tile_width]`` and are kept that way. Rings with fewer
    than two points are dropped.
    """
    translated = []
    for ring in rings:
        if len(ring) < 2:
            continue
        translated.append(np.asarray(ring, dtype=np.float64) - buffer)
    return translated


def translate_levels(levels: Sequence[ContourLevel], buffer: int) -> List[ContourLevel]:
    """Translate every level's rings, dropping levels left empty."""
    translated = []
    for level in levels:
        rings = translate_rings(level.rings, buffer)
        if rings:
            translated.append(ContourLevel(level.value, level.is_major, rings))
    return translated
