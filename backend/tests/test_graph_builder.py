from __future__ import annotations

import pytest

from evacroute.geo import GeoPoint, node_id_for
from evacroute.graph import Edge, Graph, Node
from evacroute.graph_builder import GraphBuilder, RoadSegment, build_hazard_graph
from evacroute.hazard_geometry import create_polygon


def _segment(lat1: float, lon1: float, lat2: float, lon2: float) -> RoadSegment:
    return RoadSegment(
        start_id=node_id_for(lat1, lon1),
        start_lat=lat1,
        start_lon=lon1,
        end_id=node_id_for(lat2, lon2),
        end_lat=lat2,
        end_lon=lon2,
    )


def _grid_segments() -> list[RoadSegment]:
    # Unit square with a diagonal: 5 segments over 4 shared corners.
    return [
        _segment(52.230, 21.010, 52.230, 21.020),
        _segment(52.230, 21.020, 52.240, 21.020),
        _segment(52.240, 21.020, 52.240, 21.010),
        _segment(52.240, 21.010, 52.230, 21.010),
        _segment(52.230, 21.010, 52.240, 21.020),
    ]


def test_shared_endpoints_deduplicate_nodes_and_edges_double() -> None:
    segments = _grid_segments()
    graph = build_hazard_graph(segments)

    assert graph.node_count == 4
    assert graph.node_count <= 2 * len(segments)
    assert graph.edge_count == 2 * len(segments)
    assert graph.hazard_edge_count == 0
    assert len(graph.edges_from(node_id_for(52.230, 21.010))) == 3


def test_segment_touching_hazard_marks_both_directions() -> None:
    zone = create_polygon([[21.014, 52.229], [21.016, 52.229], [21.016, 52.231], [21.014, 52.231]])
    graph = build_hazard_graph(_grid_segments(), [zone], hazard_multiplier=10.0)

    hazardous = [edge for edge in graph.all_edges() if edge.in_hazard_zone]
    assert len(hazardous) == 2
    forward, reverse = hazardous
    assert {forward.source.id, forward.target.id} == {reverse.source.id, reverse.target.id}
    for edge in hazardous:
        assert edge.hazard_multiplier == 10.0
        assert edge.effective_cost == pytest.approx(edge.distance_m * 10.0)
    assert graph.hazard_edge_count == 2


def test_safe_edges_use_unit_multiplier() -> None:
    graph = build_hazard_graph(_grid_segments())
    for edge in graph.all_edges():
        assert edge.hazard_multiplier == 1.0
        assert edge.effective_cost == pytest.approx(edge.distance_m)
        assert edge.distance_m > 0.0


def test_builder_is_single_use() -> None:
    builder = GraphBuilder()
    builder.add_segment(_grid_segments()[0])
    graph = builder.build()

    assert isinstance(graph, Graph)
    with pytest.raises(RuntimeError):
        builder.add_segment(_grid_segments()[1])
    with pytest.raises(RuntimeError):
        builder.build()


def test_builder_rejects_multiplier_below_one() -> None:
    with pytest.raises(ValueError):
        GraphBuilder(hazard_multiplier=0.5)


def test_built_graph_is_read_only() -> None:
    graph = build_hazard_graph(_grid_segments())
    with pytest.raises(TypeError):
        graph.nodes["x"] = Node("x", GeoPoint(0.0, 0.0))  # type: ignore[index]
    with pytest.raises(AttributeError):
        graph.hazard_edge_count = 5  # type: ignore[misc]


def test_nearest_node_bounded_and_unbounded() -> None:
    graph = build_hazard_graph(_grid_segments())
    near = GeoPoint(52.2301, 21.0101)

    node = graph.find_nearest_node(near)
    assert node is not None
    assert node.id == node_id_for(52.230, 21.010)
    assert graph.find_nearest_node(near, max_distance_m=50.0) == node
    assert graph.find_nearest_node(GeoPoint(52.30, 21.10), max_distance_m=500.0) is None


def test_graph_query_surface() -> None:
    a = Node("a", GeoPoint(0.0, 0.0))
    b = Node("b", GeoPoint(0.0, 0.001))
    builder = GraphBuilder()
    builder.add_edge(Edge(a, b, a.distance_to(b)))
    graph = builder.build()

    assert graph.get_node("a") == a
    assert graph.get_node("missing") is None
    assert graph.edges_from("b") == ()
    assert graph.edges_from("missing") == ()
    assert {node.id for node in graph.all_nodes()} == {"a", "b"}
    assert len(graph.all_edges()) == 1
    assert "nodes=2" in str(graph)


def test_direct_construction_copies_and_freezes_inputs() -> None:
    a = Node("a", GeoPoint(0.0, 0.0))
    b = Node("b", GeoPoint(0.0, 0.001))
    nodes = {"a": a, "b": b}
    adjacency = {"a": [Edge(a, b, 100.0, 10.0, True)]}
    graph = Graph(nodes=nodes, adjacency=adjacency)  # type: ignore[arg-type]

    nodes["c"] = Node("c", GeoPoint(1.0, 1.0))
    adjacency["a"].append(Edge(a, b, 5.0))

    assert graph.node_count == 2
    assert graph.edges_from("a") == (Edge(a, b, 100.0, 10.0, True),)
    assert graph.edges_from("b") == ()
    assert graph.hazard_edge_count == 1
    with pytest.raises(TypeError):
        graph.adjacency["b"] = ()  # type: ignore[index]
