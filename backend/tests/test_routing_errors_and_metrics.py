from __future__ import annotations

from evacroute.metrics_store import RouteOutcomeStore
from evacroute.routing_errors import (
    FROZEN_REASON_CODES,
    DataLoadError,
    InvalidInputError,
    NoRouteFoundError,
    RoutingError,
    normalize_reason_code,
)


def test_error_kinds_carry_http_status() -> None:
    assert InvalidInputError(reason_code="invalid_coordinate", message="x").status_code == 400
    assert NoRouteFoundError(reason_code="no_route_found", message="x").status_code == 404
    assert DataLoadError(reason_code="road_network_unavailable", message="x").status_code == 500


def test_errors_are_value_errors_with_readable_str() -> None:
    err = InvalidInputError(reason_code="missing_parameter", message="Missing start", details={"param": "start"})
    assert isinstance(err, RoutingError)
    assert isinstance(err, ValueError)
    assert str(err) == "Missing start"
    assert err.details == {"param": "start"}


def test_normalize_reason_code() -> None:
    assert normalize_reason_code(" no_route_found ") == "no_route_found"
    assert normalize_reason_code("something_else") == "routing_service_unavailable"
    assert normalize_reason_code("", default="hazard_data_unavailable") == "hazard_data_unavailable"
    assert "endpoints_coincide" in FROZEN_REASON_CODES


def test_outcome_store_aggregates_and_resets() -> None:
    store = RouteOutcomeStore()
    store.record("ok", compute_ms=10.0, hazard_segments_traversed=1)
    store.record("ok", compute_ms=30.0)
    store.record("not_found", compute_ms=-5.0)

    snap = store.snapshot()
    assert snap["total_routes"] == 3
    assert snap["successful_routes"] == 2
    assert snap["failed_routes"] == 1
    ok = snap["outcomes"]["ok"]  # type: ignore[index]
    assert ok["avg_compute_ms"] == 20.0
    assert ok["max_compute_ms"] == 30.0
    assert ok["hazard_segments_traversed"] == 1
    assert snap["outcomes"]["not_found"]["total_compute_ms"] == 0.0  # type: ignore[index]

    store.reset()
    assert store.snapshot()["total_routes"] == 0
