"""
Processing Module

Numerical core of contour generation: elevation decoding, contour level
planning, marching squares isoline extraction and translation back into
tile-local coordinates.
"""

from .elevation import ElevationEncoding, decode_elevation, decode_elevation_grid
from .thresholds import is_major_level, plan_thresholds
from .isolines import extract_isolines, marching_squares, translate_levels, translate_rings

__all__ = [
    "ElevationEncoding",
    "decode_elevation",
    "decode_elevation_grid",
    "is_major_level",
    "plan_thresholds",
    "extract_isolines",
    "marching_squares",
    "translate_levels",
    "translate_rings"
]
