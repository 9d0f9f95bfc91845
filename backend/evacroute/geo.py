from __future__ import annotations

import math
from dataclasses import dataclass

from .routing_errors import InvalidInputError

EARTH_RADIUS_M = 6_371_000.0
COORD_EPSILON_DEG = 1e-9
# 1e-6 degrees is roughly 0.1 m of latitude.
NODE_ID_SCALE = 1_000_000


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2.0) ** 2
        + (math.cos(phi1) * math.cos(phi2) * (math.sin(dlambda / 2.0) ** 2))
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(max(0.0, a))))


def node_id_for(lat: float, lon: float) -> str:
    """Stable node key: both axes scaled by 1e6 and rounded half up."""
    lat_scaled = int(math.floor(float(lat) * NODE_ID_SCALE + 0.5))
    lon_scaled = int(math.floor(float(lon) * NODE_ID_SCALE + 0.5))
    return f"{lat_scaled}_{lon_scaled}"


@dataclass(frozen=True, eq=False)
class GeoPoint:
    """WGS84 point. Validated on construction, compared with a small tolerance."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        lat = self.lat
        lon = self.lon
        if isinstance(lat, bool) or isinstance(lon, bool):
            raise InvalidInputError(
                reason_code="invalid_coordinate",
                message="Coordinates must be numeric",
            )
        if not isinstance(lat, (int, float)) or not math.isfinite(lat) or not -90.0 <= lat <= 90.0:
            raise InvalidInputError(
                reason_code="invalid_coordinate",
                message=f"Latitude must be between -90 and 90, got: {lat}",
                details={"lat": lat},
            )
        if not isinstance(lon, (int, float)) or not math.isfinite(lon) or not -180.0 <= lon <= 180.0:
            raise InvalidInputError(
                reason_code="invalid_coordinate",
                message=f"Longitude must be between -180 and 180, got: {lon}",
                details={"lon": lon},
            )
        object.__setattr__(self, "lat", float(lat))
        object.__setattr__(self, "lon", float(lon))

    @classmethod
    def parse(cls, lat_lon: str | None) -> GeoPoint:
        """Parse the ``"lat,lon"`` query-string form."""
        if lat_lon is None or not str(lat_lon).strip():
            raise InvalidInputError(
                reason_code="invalid_coordinate",
                message="Coordinate string cannot be empty",
            )
        parts = str(lat_lon).split(",")
        if len(parts) != 2:
            raise InvalidInputError(
                reason_code="invalid_coordinate",
                message=f"Expected format 'lat,lon', got: {lat_lon}",
            )
        try:
            lat = float(parts[0].strip())
            lon = float(parts[1].strip())
        except ValueError as exc:
            raise InvalidInputError(
                reason_code="invalid_coordinate",
                message=f"Invalid coordinate values: {lat_lon}",
            ) from exc
        return cls(lat=lat, lon=lon)

    def distance_to(self, other: GeoPoint) -> float:
        return haversine_m(self.lat, self.lon, other.lat, other.lon)

    def to_lon_lat(self) -> tuple[float, float]:
        return (self.lon, self.lat)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GeoPoint):
            return NotImplemented
        return (
            abs(self.lat - other.lat) < COORD_EPSILON_DEG
            and abs(self.lon - other.lon) < COORD_EPSILON_DEG
        )

    def __hash__(self) -> int:
        return hash((round(self.lat, 8), round(self.lon, 8)))

    def __str__(self) -> str:
        return f"{self.lat:.6f},{self.lon:.6f}"
