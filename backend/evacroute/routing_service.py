from __future__ import annotations

import logging
import time
from pathlib import Path

from .geo import GeoPoint
from .graph import Graph, Node
from .graph_builder import DEFAULT_HAZARD_MULTIPLIER, build_hazard_graph
from .geojson_loader import load_road_network
from .hazard_zones import HazardZoneProvider
from .logging_utils import log_event
from .metrics_store import record_route_outcome
from .models import GraphInfo, RouteMetrics, RouteResult
from .pathfinding import HazardDijkstraRouter, PathFinder
from .routing_errors import InvalidInputError, NoRouteFoundError

DEFAULT_MAX_SNAP_DISTANCE_M = 500.0


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


class RoutingService:
    """Snaps endpoints onto the road graph, runs the pathfinder, assembles the result.

    The graph is read-only after construction, so one instance serves
    concurrent requests.
    """

    def __init__(
        self,
        graph: Graph,
        path_finder: PathFinder | None = None,
        *,
        max_snap_distance_m: float = DEFAULT_MAX_SNAP_DISTANCE_M,
    ) -> None:
        if float(max_snap_distance_m) <= 0.0:
            raise ValueError(f"max_snap_distance_m must be > 0, got {max_snap_distance_m}")
        self._graph = graph
        self._path_finder: PathFinder = path_finder or HazardDijkstraRouter()
        self._max_snap_distance_m = float(max_snap_distance_m)
        self._info = GraphInfo(
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            hazard_edge_count=graph.hazard_edge_count,
        )

    @classmethod
    def from_sources(
        cls,
        roads_path: str | Path,
        hazard_provider: HazardZoneProvider,
        *,
        hazard_multiplier: float = DEFAULT_HAZARD_MULTIPLIER,
        max_snap_distance_m: float = DEFAULT_MAX_SNAP_DISTANCE_M,
        path_finder: PathFinder | None = None,
    ) -> RoutingService:
        started = time.perf_counter()
        segments = load_road_network(roads_path)
        zones = hazard_provider.get_hazard_zones()
        graph = build_hazard_graph(segments, zones, hazard_multiplier=hazard_multiplier)
        service = cls(graph, path_finder, max_snap_distance_m=max_snap_distance_m)
        log_event(
            "routing_service_ready",
            roads_path=str(roads_path),
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            hazard_edge_count=graph.hazard_edge_count,
            elapsed_ms=round(_elapsed_ms(started), 2),
        )
        return service

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def max_snap_distance_m(self) -> float:
        return self._max_snap_distance_m

    def graph_info(self) -> GraphInfo:
        return self._info

    def _snap(self, point: GeoPoint, label: str) -> Node:
        nearest, dist = self._graph.nearest_node_with_distance(point)
        if nearest is None or dist > self._max_snap_distance_m:
            log_event(
                "route_snap_failed",
                level=logging.WARNING,
                endpoint=label,
                point=str(point),
                nearest_m=None if nearest is None else round(dist, 1),
                max_snap_distance_m=self._max_snap_distance_m,
            )
            raise InvalidInputError(
                reason_code="snap_distance_exceeded",
                message=(
                    f"The {label} coordinate ({point}) is more than "
                    f"{self._max_snap_distance_m:.0f}m from any road in the network. "
                    "Please specify a location closer to a road."
                ),
                details={"endpoint": label, "max_snap_distance_m": self._max_snap_distance_m},
            )
        return nearest

    def compute_route(self, start: GeoPoint, end: GeoPoint) -> RouteResult:
        started = time.perf_counter()
        try:
            start_node = self._snap(start, "start")
            end_node = self._snap(end, "end")
            if start_node == end_node:
                raise InvalidInputError(
                    reason_code="endpoints_coincide",
                    message=(
                        "Start and end points resolve to the same road node. "
                        "Please provide more distant locations."
                    ),
                    details={"node_id": start_node.id},
                )
        except InvalidInputError:
            record_route_outcome("invalid_input", compute_ms=_elapsed_ms(started))
            raise

        result = self._path_finder.find_path(self._graph, start_node, end_node)
        if result is None or result.is_empty:
            log_event(
                "route_not_found",
                level=logging.WARNING,
                start=str(start),
                end=str(end),
                start_node_id=start_node.id,
                end_node_id=end_node.id,
            )
            record_route_outcome("not_found", compute_ms=_elapsed_ms(started))
            raise NoRouteFoundError(
                reason_code="no_route_found",
                message=f"No route found from {start} to {end}. The locations may not be connected.",
                details={"start_node_id": start_node.id, "end_node_id": end_node.id},
            )

        hazard_in_path = result.hazard_edges_in_path
        edge_total = result.edge_count
        risk = (hazard_in_path / edge_total) if edge_total > 0 else 0.0
        compute_ms = _elapsed_ms(started)

        meta = RouteMetrics(
            total_distance_meters=result.total_distance_m,
            node_count=len(result.nodes),
            avoided_hazard_segments=result.hazard_edges_considered - hazard_in_path,
            hazard_segments_traversed=hazard_in_path,
            computation_time_ms=int(round(compute_ms)),
            risk_score=risk,
        )
        record_route_outcome("ok", compute_ms=compute_ms, hazard_segments_traversed=hazard_in_path)
        log_event(
            "route_computed",
            start=str(start),
            end=str(end),
            total_distance_m=round(result.total_distance_m, 1),
            node_count=meta.node_count,
            hazard_segments_traversed=hazard_in_path,
            avoided_hazard_segments=meta.avoided_hazard_segments,
            risk_score=round(risk, 3),
            compute_ms=round(compute_ms, 2),
        )
        return RouteResult.from_coordinates([node.position.to_lon_lat() for node in result.nodes], meta)
