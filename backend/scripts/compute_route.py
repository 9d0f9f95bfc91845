from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from evacroute.geo import GeoPoint
from evacroute.graph_builder import DEFAULT_HAZARD_MULTIPLIER
from evacroute.hazard_zones import GeoJsonHazardZoneProvider
from evacroute.routing_errors import RoutingError
from evacroute.routing_service import DEFAULT_MAX_SNAP_DISTANCE_M, RoutingService
from evacroute.settings import settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute one hazard-aware evacuation route from local GeoJSON files."
    )
    parser.add_argument("--roads", default=settings.roads_geojson_path, help="Road network GeoJSON path.")
    parser.add_argument("--floods", default=settings.floods_geojson_path, help="Hazard polygon GeoJSON path.")
    parser.add_argument("--start", default=None, help="Start point as 'lat,lon'.")
    parser.add_argument("--end", default=None, help="End point as 'lat,lon'.")
    parser.add_argument("--hazard-multiplier", type=float, default=DEFAULT_HAZARD_MULTIPLIER)
    parser.add_argument("--max-snap-m", type=float, default=DEFAULT_MAX_SNAP_DISTANCE_M)
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print graph node/edge/hazard counts instead of routing.",
    )
    return parser


def run_compute_route(
    *,
    roads: str,
    floods: str,
    start: str | None,
    end: str | None,
    hazard_multiplier: float = DEFAULT_HAZARD_MULTIPLIER,
    max_snap_m: float = DEFAULT_MAX_SNAP_DISTANCE_M,
    info_only: bool = False,
) -> dict[str, Any]:
    service = RoutingService.from_sources(
        roads,
        GeoJsonHazardZoneProvider(floods),
        hazard_multiplier=hazard_multiplier,
        max_snap_distance_m=max_snap_m,
    )
    if info_only:
        return service.graph_info().model_dump(by_alias=True)
    result = service.compute_route(GeoPoint.parse(start), GeoPoint.parse(end))
    return result.model_dump(by_alias=True)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if not args.info and (not args.start or not args.end):
        parser.error("--start and --end are required unless --info is given")

    try:
        payload = run_compute_route(
            roads=args.roads,
            floods=args.floods,
            start=args.start,
            end=args.end,
            hazard_multiplier=args.hazard_multiplier,
            max_snap_m=args.max_snap_m,
            info_only=args.info,
        )
    except RoutingError as exc:
        print(
            json.dumps({"status": exc.status_code, "reasonCode": exc.reason_code, "message": exc.message}),
            file=sys.stderr,
        )
        return 2
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
