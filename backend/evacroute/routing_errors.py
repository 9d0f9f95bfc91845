from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "invalid_coordinate",
        "missing_parameter",
        "snap_distance_exceeded",
        "endpoints_coincide",
        "no_route_found",
        "road_network_unavailable",
        "hazard_data_unavailable",
        "routing_service_unavailable",
    }
)


@dataclass
class RoutingError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    status_code: ClassVar[int] = 500

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidInputError(RoutingError):
    """Bad coordinates, unusable endpoints. Recoverable by sending different input."""

    status_code: ClassVar[int] = 400


@dataclass
class NoRouteFoundError(RoutingError):
    """Destination unreachable from the snapped start node."""

    status_code: ClassVar[int] = 404


@dataclass
class DataLoadError(RoutingError):
    """Road or hazard data could not be located or parsed."""

    status_code: ClassVar[int] = 500


def normalize_reason_code(reason_code: str, *, default: str = "routing_service_unavailable") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default
