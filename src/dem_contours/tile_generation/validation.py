"""
Contour tile inspection

Decodes a generated MVT with a generic decoder and checks it against what
map clients expect from a contour tile: a ``contours`` layer of LineString
features carrying integer ``ele`` and ``level`` attributes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import mapbox_vector_tile

from .mvt_encoder import DEFAULT_EXTENT, LAYER_NAME


LINE_TYPES = {"LineString", "MultiLineString"}


@dataclass
class TileSummary:
    """What a decoded contour tile contains."""
    size_bytes: int
    layers: List[str] = field(default_factory=list)
    feature_count: int = 0
    extent: Optional[int] = None
    x_range: Optional[Tuple[int, int]] = None
    y_range: Optional[Tuple[int, int]] = None
    elevations: List[int] = field(default_factory=list)
    major_count: int = 0
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size_bytes": self.size_bytes,
            "layers": self.layers,
            "feature_count": self.feature_count,
            "extent": self.extent,
            "x_range": self.x_range,
            "y_range": self.y_range,
            "elevations": self.elevations,
            "major_count": self.major_count,
            "issues": self.issues,
        }


def _iter_points(coordinates):
    if coordinates and isinstance(coordinates[0], (int, float)):
        yield coordinates
        return
    for part in coordinates or []:
        yield from _iter_points(part)


def summarize_tile(data: bytes, extent: int = DEFAULT_EXTENT) -> TileSummary:
    """
    Decode an MVT and report on its contour layer.

    Args:
        data: Encoded tile
        extent: Extent the tile was encoded with

    Returns:
        TileSummary; problems are listed in ``issues`` rather than raised
    """
    summary = TileSummary(size_bytes=len(data))
    if not data:
        summary.issues.append("Tile is empty")
        return summary

    try:
        decoded = mapbox_vector_tile.decode(data, default_options={"y_coord_down": True})
    except Exception as e:
        summary.issues.append(f"Tile cannot be decoded: {e}")
        return summary

    summary.layers = sorted(decoded)
    layer = decoded.get(LAYER_NAME)
    if layer is None:
        summary.issues.append(f'No "{LAYER_NAME}" layer in tile')
        return summary

    features = layer.get("features", [])
    summary.feature_count = len(features)
    summary.extent = layer.get("extent")
    if summary.extent != extent:
        summary.issues.append(f"Layer extent {summary.extent} != {extent}")

    xs, ys = [], []
    elevations = set()
    for index, feature in enumerate(features):
        geometry = feature.get("geometry") or {}
        if geometry.get("type") not in LINE_TYPES:
            summary.issues.append(f"Feature {index}: expected LineString, got {geometry.get('type')}")

        for point in _iter_points(geometry.get("coordinates")):
            xs.append(point[0])
            ys.append(point[1])

        properties = feature.get("properties", {})
        ele = properties.get("ele")
        level = properties.get("level")
        if not isinstance(ele, int):
            summary.issues.append(f"Feature {index}: missing or non-integer ele")
        else:
            elevations.add(ele)
        if level not in (0, 1):
            summary.issues.append(f"Feature {index}: level must be 0 or 1, got {level!r}")
        elif level == 1:
            summary.major_count += 1

    if xs:
        summary.x_range = (min(xs), max(xs))
        summary.y_range = (min(ys), max(ys))
    summary.elevations = sorted(elevations)
    return summary
