"""Contour level planning and major/minor classification."""

import math
from typing import List

from ..errors import ConfigurationError


# Absorbs floating drift when testing a level against the major interval
MAJOR_TOLERANCE = 0.01


def plan_thresholds(minimum: float, maximum: float, minor_interval: float) -> List[float]:
    """
    Plan the contour levels for an elevation range.

    Levels are the multiples of ``minor_interval`` from
    ``ceil(minimum / minor_interval) * minor_interval`` up to ``maximum``.
    Each level is computed as ``k * minor_interval`` rather than by
    repeated addition, so there is no accumulated drift.

    Args:
        minimum: Lowest elevation in the grid
        maximum: Highest elevation in the grid
        minor_interval: Spacing between levels

    Returns:
        Strictly increasing list of levels, empty if minimum > maximum
    """
    if minor_interval <= 0:
        raise ConfigurationError(f"Contour interval must be positive, got {minor_interval}")

    if minimum > maximum:
        return []

    thresholds = []
    k = math.ceil(minimum / minor_interval)
    value = k * minor_interval
    while value <= maximum:
        thresholds.append(float(value))
        k += 1
        value = k * minor_interval

    return thresholds


def is_major_level(value: float, major_interval: float) -> bool:
    """True if ``value`` sits on a multiple of ``major_interval``."""
    return abs(math.fmod(value, major_interval)) < MAJOR_TOLERANCE
