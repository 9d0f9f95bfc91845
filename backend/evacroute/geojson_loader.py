"""GeoJSON parsing for the road network and hazard polygons.

Roads: a FeatureCollection of LineString features; every pair of consecutive
coordinates becomes one ``RoadSegment``. Other geometry types are skipped and
a feature that fails to parse is logged and dropped without failing the load.

Hazards: a FeatureCollection, a single Feature or a bare geometry. Polygons
contribute their outer ring only; MultiPolygons are unioned into one geometry.
"""
from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry.base import BaseGeometry

from .geo import GeoPoint, node_id_for
from .graph_builder import RoadSegment
from .hazard_geometry import create_polygon, union_polygons
from .logging_utils import log_event
from .routing_errors import DataLoadError
from .settings import _default_data_dir


def resolve_data_path(path: str | Path) -> Path | None:
    """Return the first existing candidate: the path as given, then under the bundled data dir."""
    candidate = Path(path)
    if candidate.exists():
        return candidate
    if not candidate.is_absolute():
        bundled = _default_data_dir() / candidate
        if bundled.exists():
            return bundled
        bundled = _default_data_dir() / candidate.name
        if bundled.exists():
            return bundled
    return None


def _read_json(path: str | Path, *, reason_code: str, label: str) -> Any:
    resolved = resolve_data_path(path)
    if resolved is None:
        raise DataLoadError(
            reason_code=reason_code,
            message=f"{label} file not found: {path}",
            details={"path": str(path)},
        )
    try:
        with resolved.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        # ValueError covers JSONDecodeError and UnicodeDecodeError.
        raise DataLoadError(
            reason_code=reason_code,
            message=f"Failed to load {label.lower()} from {path}: {exc}",
            details={"path": str(resolved)},
        ) from exc


def extract_properties(raw: Any) -> dict[str, str]:
    """Keep string and numeric properties as strings; drop everything else."""
    if not isinstance(raw, Mapping):
        return {}
    props: dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, bool):
            continue
        if isinstance(value, str):
            props[str(key)] = value
        elif isinstance(value, (int, float)):
            props[str(key)] = str(value)
    return props


def _parse_position(coord: Any) -> GeoPoint:
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        raise ValueError(f"invalid position: {coord!r}")
    return GeoPoint(lat=float(coord[1]), lon=float(coord[0]))


def parse_road_feature(feature: Mapping[str, Any]) -> list[RoadSegment]:
    geometry = feature.get("geometry") or {}
    if not isinstance(geometry, Mapping) or geometry.get("type") != "LineString":
        return []

    properties = extract_properties(feature.get("properties"))
    coordinates = geometry.get("coordinates") or []
    if not isinstance(coordinates, list):
        raise ValueError("LineString coordinates must be a list")

    segments: list[RoadSegment] = []
    prev: GeoPoint | None = None
    for coord in coordinates:
        point = _parse_position(coord)
        if prev is not None:
            segments.append(
                RoadSegment(
                    start_id=node_id_for(prev.lat, prev.lon),
                    start_lat=prev.lat,
                    start_lon=prev.lon,
                    end_id=node_id_for(point.lat, point.lon),
                    end_lat=point.lat,
                    end_lon=point.lon,
                    properties=properties,
                )
            )
        prev = point
    return segments


def parse_road_network(payload: Any) -> list[RoadSegment]:
    if not isinstance(payload, Mapping) or payload.get("type") != "FeatureCollection":
        got = payload.get("type") if isinstance(payload, Mapping) else type(payload).__name__
        raise DataLoadError(
            reason_code="road_network_unavailable",
            message=f"Expected GeoJSON FeatureCollection, got: {got}",
        )

    segments: list[RoadSegment] = []
    features = payload.get("features") or []
    for index, feature in enumerate(features):
        try:
            if not isinstance(feature, Mapping):
                raise ValueError("feature is not an object")
            segments.extend(parse_road_feature(feature))
        except (TypeError, ValueError) as exc:
            log_event(
                "road_feature_skipped",
                level=logging.WARNING,
                feature_index=index,
                error=str(exc),
            )
    return segments


def load_road_network(path: str | Path) -> list[RoadSegment]:
    started = time.perf_counter()
    payload = _read_json(path, reason_code="road_network_unavailable", label="Road network")
    segments = parse_road_network(payload)
    log_event(
        "road_network_loaded",
        path=str(path),
        segment_count=len(segments),
        elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
    )
    return segments


def _parse_polygon(coordinates: Any) -> BaseGeometry | None:
    if not isinstance(coordinates, list) or not coordinates:
        return None
    # Holes (rings after the first) are ignored.
    return create_polygon(coordinates[0])


def parse_hazard_geometry(geometry: Any) -> BaseGeometry | None:
    if not isinstance(geometry, Mapping):
        return None
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if geom_type == "Polygon":
        return _parse_polygon(coordinates)
    if geom_type == "MultiPolygon":
        polygons = [_parse_polygon(part) for part in (coordinates or [])]
        return union_polygons(poly for poly in polygons if poly is not None)
    log_event("hazard_geometry_skipped", level=logging.DEBUG, geometry_type=str(geom_type))
    return None


def parse_hazard_zones(payload: Any) -> list[BaseGeometry]:
    if not isinstance(payload, Mapping):
        return []
    kind = payload.get("type")
    if kind == "FeatureCollection":
        candidates = [
            parse_hazard_geometry(feature.get("geometry"))
            for feature in (payload.get("features") or [])
            if isinstance(feature, Mapping)
        ]
    elif kind == "Feature":
        candidates = [parse_hazard_geometry(payload.get("geometry"))]
    else:
        candidates = [parse_hazard_geometry(payload)]
    return [geom for geom in candidates if geom is not None]


def load_hazard_zones(path: str | Path) -> list[BaseGeometry]:
    payload = _read_json(path, reason_code="hazard_data_unavailable", label="Hazard zone")
    try:
        return parse_hazard_zones(payload)
    except (TypeError, ValueError, IndexError, ShapelyError) as exc:
        raise DataLoadError(
            reason_code="hazard_data_unavailable",
            message=f"Invalid hazard geometry in {path}: {exc}",
            details={"path": str(path)},
        ) from exc
