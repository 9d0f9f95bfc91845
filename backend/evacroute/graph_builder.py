from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from shapely.geometry.base import BaseGeometry

from .geo import GeoPoint
from .graph import Edge, Graph, Node
from .hazard_geometry import segment_intersects_any
from .logging_utils import log_event

DEFAULT_HAZARD_MULTIPLIER = 10.0


@dataclass(frozen=True)
class RoadSegment:
    """Straight piece of road between two endpoints, before graph conversion."""

    start_id: str
    start_lat: float
    start_lon: float
    end_id: str
    end_lat: float
    end_lon: float
    properties: Mapping[str, str] = field(default_factory=dict)


class GraphBuilder:
    """Stages nodes and edges, then hands off an immutable ``Graph``.

    Single use: once ``build()`` has run, further additions raise.
    """

    def __init__(
        self,
        hazard_zones: Sequence[BaseGeometry] = (),
        *,
        hazard_multiplier: float = DEFAULT_HAZARD_MULTIPLIER,
    ) -> None:
        if float(hazard_multiplier) < 1.0:
            raise ValueError(f"hazard_multiplier must be >= 1.0, got {hazard_multiplier}")
        self._hazard_zones = tuple(hazard_zones)
        self._hazard_multiplier = float(hazard_multiplier)
        self._nodes: dict[str, Node] = {}
        self._adjacency_mut: dict[str, list[Edge]] = {}
        self._hazardous_segments = 0
        self._segments_seen = 0
        self._built = False

    @property
    def hazard_multiplier(self) -> float:
        return self._hazard_multiplier

    def _ensure_open(self) -> None:
        if self._built:
            raise RuntimeError("graph already built; GraphBuilder is single use")

    def add_node(self, node: Node) -> Node:
        self._ensure_open()
        existing = self._nodes.get(node.id)
        if existing is not None:
            return existing
        self._nodes[node.id] = node
        self._adjacency_mut.setdefault(node.id, [])
        return node

    def get_or_create_node(self, node_id: str, lat: float, lon: float) -> Node:
        existing = self._nodes.get(node_id)
        if existing is not None:
            return existing
        return self.add_node(Node(id=node_id, position=GeoPoint(lat=lat, lon=lon)))

    def add_edge(self, edge: Edge) -> None:
        self._ensure_open()
        self.add_node(edge.source)
        self.add_node(edge.target)
        self._adjacency_mut[edge.source.id].append(edge)

    def add_segment(self, segment: RoadSegment) -> bool:
        """Add both directions of a segment; returns whether it was tagged hazardous."""
        self._ensure_open()
        start = self.get_or_create_node(segment.start_id, segment.start_lat, segment.start_lon)
        end = self.get_or_create_node(segment.end_id, segment.end_lat, segment.end_lon)
        distance_m = start.distance_to(end)

        hazardous = segment_intersects_any(
            start.lon,
            start.lat,
            end.lon,
            end.lat,
            self._hazard_zones,
        )
        multiplier = self._hazard_multiplier if hazardous else 1.0
        # Both directions share hazard status; no directional asymmetry.
        self.add_edge(Edge(start, end, distance_m, multiplier, hazardous))
        self.add_edge(Edge(end, start, distance_m, multiplier, hazardous))
        self._segments_seen += 1
        if hazardous:
            self._hazardous_segments += 1
        return hazardous

    def build(self) -> Graph:
        self._ensure_open()
        self._built = True
        return Graph.from_parts(self._nodes, self._adjacency_mut)

    def build_from_segments(self, segments: Iterable[RoadSegment]) -> Graph:
        started = time.perf_counter()
        for segment in segments:
            self.add_segment(segment)
        graph = self.build()
        log_event(
            "graph_built",
            segment_count=self._segments_seen,
            hazardous_segment_count=self._hazardous_segments,
            hazard_zone_count=len(self._hazard_zones),
            hazard_multiplier=self._hazard_multiplier,
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            hazard_edge_count=graph.hazard_edge_count,
            elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
        )
        return graph


def build_hazard_graph(
    segments: Iterable[RoadSegment],
    hazard_zones: Sequence[BaseGeometry] = (),
    *,
    hazard_multiplier: float = DEFAULT_HAZARD_MULTIPLIER,
) -> Graph:
    return GraphBuilder(hazard_zones, hazard_multiplier=hazard_multiplier).build_from_segments(segments)
