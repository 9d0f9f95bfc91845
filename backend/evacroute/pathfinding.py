from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass
from math import inf
from typing import Protocol

from .graph import Edge, Graph, Node
from .logging_utils import log_event


@dataclass(frozen=True)
class PathResult:
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    total_distance_m: float
    total_cost: float
    hazard_edges_in_path: int
    hazard_edges_considered: int

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def edge_count(self) -> int:
        return len(self.edges)


class PathFinder(Protocol):
    def find_path(self, graph: Graph, start: Node, end: Node) -> PathResult | None:
        """Return the cheapest path, or None when ``end`` is unreachable."""
        ...


class HazardDijkstraRouter:
    """Dijkstra over effective (hazard-weighted) edge cost.

    Heap entries are ``(cost, seq, node_id)``; the insertion counter keeps
    equal-cost pops in FIFO order. Stale duplicates are skipped on pop rather
    than removed. Which of several equal-cost paths wins depends on discovery
    order. All search state is local to one call, so a single router can serve
    concurrent requests over a shared graph.
    """

    def find_path(self, graph: Graph, start: Node, end: Node) -> PathResult | None:
        if start.id == end.id:
            return PathResult(
                nodes=(start,),
                edges=(),
                total_distance_m=0.0,
                total_cost=0.0,
                hazard_edges_in_path=0,
                hazard_edges_considered=0,
            )

        costs: dict[str, float] = {start.id: 0.0}
        previous_node: dict[str, str] = {}
        previous_edge: dict[str, Edge] = {}
        settled: set[str] = set()
        # Counts relaxation attempts through hazardous edges, not distinct edges.
        hazard_edges_considered = 0

        seq = itertools.count()
        heap: list[tuple[float, int, str]] = [(0.0, next(seq), start.id)]
        while heap:
            cost, _, node_id = heapq.heappop(heap)
            if node_id in settled:
                continue
            settled.add(node_id)

            if node_id == end.id:
                return self._reconstruct(
                    graph,
                    start=start,
                    end=end,
                    previous_node=previous_node,
                    previous_edge=previous_edge,
                    hazard_edges_considered=hazard_edges_considered,
                    settled_count=len(settled),
                )

            for edge in graph.edges_from(node_id):
                nxt = edge.target.id
                if nxt in settled:
                    continue
                if edge.in_hazard_zone:
                    hazard_edges_considered += 1
                new_cost = cost + edge.effective_cost
                if new_cost < costs.get(nxt, inf):
                    costs[nxt] = new_cost
                    previous_node[nxt] = node_id
                    previous_edge[nxt] = edge
                    heapq.heappush(heap, (new_cost, next(seq), nxt))

        log_event(
            "path_search_exhausted",
            level=logging.WARNING,
            start_node_id=start.id,
            end_node_id=end.id,
            settled_count=len(settled),
        )
        return None

    @staticmethod
    def _reconstruct(
        graph: Graph,
        *,
        start: Node,
        end: Node,
        previous_node: dict[str, str],
        previous_edge: dict[str, Edge],
        hazard_edges_considered: int,
        settled_count: int,
    ) -> PathResult:
        nodes: list[Node] = []
        edges: list[Edge] = []
        current: str | None = end.id
        while current is not None:
            node = graph.get_node(current)
            nodes.append(node if node is not None else end)
            edge = previous_edge.get(current)
            if edge is not None:
                edges.append(edge)
            current = previous_node.get(current)
        nodes.reverse()
        edges.reverse()

        total_distance = 0.0
        total_cost = 0.0
        hazard_in_path = 0
        for edge in edges:
            total_distance += edge.distance_m
            total_cost += edge.effective_cost
            if edge.in_hazard_zone:
                hazard_in_path += 1

        log_event(
            "path_reconstructed",
            level=logging.DEBUG,
            start_node_id=start.id,
            end_node_id=end.id,
            node_count=len(nodes),
            settled_count=settled_count,
            total_distance_m=round(total_distance, 1),
            hazard_edges_in_path=hazard_in_path,
            hazard_edges_considered=hazard_edges_considered,
        )
        return PathResult(
            nodes=tuple(nodes),
            edges=tuple(edges),
            total_distance_m=total_distance,
            total_cost=total_cost,
            hazard_edges_in_path=hazard_in_path,
            hazard_edges_considered=hazard_edges_considered,
        )
