from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .geo import GeoPoint


@dataclass(frozen=True, eq=False)
class Node:
    """Road intersection or segment endpoint. Identity is the id alone."""

    id: str
    position: GeoPoint

    @property
    def lat(self) -> float:
        return self.position.lat

    @property
    def lon(self) -> float:
        return self.position.lon

    def distance_to(self, other: Node) -> float:
        return self.position.distance_to(other.position)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Edge:
    source: Node
    target: Node
    distance_m: float
    hazard_multiplier: float = 1.0
    in_hazard_zone: bool = False

    @property
    def effective_cost(self) -> float:
        return self.distance_m * self.hazard_multiplier


@dataclass(frozen=True)
class Graph:
    """Read-only road network.

    Whatever maps are passed in are copied on construction: nodes and adjacency
    end up as ``MappingProxyType`` views over private dicts of tuples, so callers
    keep no handle that could mutate the graph and concurrent readers never
    observe a change. ``hazard_edge_count`` is derived, not supplied.
    """

    nodes: Mapping[str, Node]
    adjacency: Mapping[str, tuple[Edge, ...]]
    hazard_edge_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        node_map = dict(self.nodes)
        adjacency_map = {node_id: tuple(self.adjacency.get(node_id, ())) for node_id in node_map}
        for node_id, edges in self.adjacency.items():
            if node_id not in adjacency_map:
                adjacency_map[node_id] = tuple(edges)
        hazard_edges = sum(1 for edges in adjacency_map.values() for edge in edges if edge.in_hazard_zone)
        object.__setattr__(self, "nodes", MappingProxyType(node_map))
        object.__setattr__(self, "adjacency", MappingProxyType(adjacency_map))
        object.__setattr__(self, "hazard_edge_count", hazard_edges)

    @classmethod
    def from_parts(
        cls,
        nodes: Mapping[str, Node],
        adjacency: Mapping[str, list[Edge] | tuple[Edge, ...]],
    ) -> Graph:
        return cls(nodes=nodes, adjacency=adjacency)  # type: ignore[arg-type]

    def get_node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def edges_from(self, node_id: str) -> tuple[Edge, ...]:
        return self.adjacency.get(node_id, ())

    def all_nodes(self) -> tuple[Node, ...]:
        return tuple(self.nodes.values())

    def all_edges(self) -> tuple[Edge, ...]:
        return tuple(edge for edges in self.adjacency.values() for edge in edges)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.adjacency.values())

    def nearest_node_with_distance(self, point: GeoPoint) -> tuple[Node | None, float]:
        # Linear scan; fine for city-sized demo networks.
        nearest: Node | None = None
        best = math.inf
        for node in self.nodes.values():
            dist = point.distance_to(node.position)
            if dist < best:
                best = dist
                nearest = node
        return nearest, best

    def find_nearest_node(self, point: GeoPoint, max_distance_m: float | None = None) -> Node | None:
        nearest, dist = self.nearest_node_with_distance(point)
        if nearest is None:
            return None
        if max_distance_m is not None and dist > float(max_distance_m):
            return None
        return nearest

    def __str__(self) -> str:
        return f"Graph(nodes={self.node_count}, edges={self.edge_count}, hazard_edges={self.hazard_edge_count})"
