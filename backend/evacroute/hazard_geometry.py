"""Planar shapely helpers for hazard tagging.

Coordinates are (lon, lat) in x/y order, matching GeoJSON. No projection is
applied, which is acceptable at the scale of a single urban network.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from shapely.geometry import LineString, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.validation import make_valid

_AREAL_TYPES = ("Polygon", "MultiPolygon")


def create_line(lon1: float, lat1: float, lon2: float, lat2: float) -> LineString:
    return LineString([(float(lon1), float(lat1)), (float(lon2), float(lat2))])


def create_polygon(ring: Sequence[Sequence[float]]) -> BaseGeometry:
    """Build a polygon from an outer ring of [lon, lat] pairs, closing it if needed.

    Self-intersecting rings (bowties) are repaired with ``make_valid``, which may
    return a MultiPolygon covering the same area.
    """
    coords = [(float(pt[0]), float(pt[1])) for pt in ring]
    if coords and coords[0] != coords[-1]:
        coords.append(coords[0])
    if len(set(coords)) < 3:
        raise ValueError(f"polygon ring needs at least 3 distinct points, got {len(set(coords))}")
    poly = Polygon(coords)
    if poly.is_valid:
        return poly
    repaired = make_valid(poly)
    if repaired.geom_type == "GeometryCollection":
        repaired = unary_union([part for part in repaired.geoms if part.geom_type in _AREAL_TYPES])
    if repaired.is_empty or repaired.geom_type not in _AREAL_TYPES:
        raise ValueError("polygon ring encloses no area")
    return repaired


def union_polygons(polygons: Iterable[BaseGeometry]) -> BaseGeometry | None:
    parts = [poly for poly in polygons if poly is not None and not poly.is_empty]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return unary_union(parts)


def line_intersects(line: LineString, geometry: BaseGeometry) -> bool:
    # Non-strict: touching the boundary counts as intersecting.
    return bool(line.intersects(geometry))


def segment_intersects_any(
    lon1: float,
    lat1: float,
    lon2: float,
    lat2: float,
    zones: Sequence[BaseGeometry],
) -> bool:
    if not zones:
        return False
    line = create_line(lon1, lat1, lon2, lat2)
    for zone in zones:
        if line_intersects(line, zone):
            return True
    return False
