from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # Wire format is camelCase; Python code uses snake_case names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeoJSONLineString(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: list[tuple[float, float]]  # [lon, lat]


class RouteMetrics(_CamelModel):
    total_distance_meters: float = Field(..., ge=0.0)
    node_count: int = Field(..., ge=0)
    avoided_hazard_segments: int
    hazard_segments_traversed: int = Field(..., ge=0)
    computation_time_ms: int = Field(..., ge=0)
    risk_score: float = Field(..., ge=0.0, le=1.0)


class RouteResult(_CamelModel):
    """GeoJSON Feature carrying the route line plus routing metadata."""

    type: Literal["Feature"] = "Feature"
    geometry: GeoJSONLineString
    properties: dict[str, Any] = Field(default_factory=dict)
    meta: RouteMetrics

    @property
    def path(self) -> list[tuple[float, float]]:
        return list(self.geometry.coordinates)

    @classmethod
    def from_coordinates(cls, coordinates: list[tuple[float, float]], meta: RouteMetrics) -> RouteResult:
        return cls(
            geometry=GeoJSONLineString(coordinates=coordinates),
            properties={
                "routeType": "evacuation",
                "distanceKm": f"{meta.total_distance_meters / 1000.0:.2f}",
            },
            meta=meta,
        )


class GraphInfo(_CamelModel):
    node_count: int
    edge_count: int
    hazard_edge_count: int


class EvacHealthResponse(_CamelModel):
    status: str = "ok"
    graph_nodes: int
    graph_edges: int
    hazard_edges: int


class ErrorResponse(_CamelModel):
    status: int
    error: str
    message: str
    reason_code: str
