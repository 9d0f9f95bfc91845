from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .geo import GeoPoint
from .hazard_zones import GeoJsonHazardZoneProvider
from .logging_utils import log_event
from .metrics_store import metrics_snapshot, record_route_outcome
from .models import ErrorResponse, EvacHealthResponse, RouteResult
from .routing_errors import DataLoadError, InvalidInputError, RoutingError, normalize_reason_code
from .routing_service import RoutingService
from .settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A service injected before startup (tests, embedding) is kept as is.
    if getattr(app.state, "routing_service", None) is None:
        app.state.routing_service = RoutingService.from_sources(
            settings.roads_geojson_path,
            GeoJsonHazardZoneProvider(settings.floods_geojson_path),
            hazard_multiplier=settings.hazard_multiplier,
            max_snap_distance_m=settings.max_snap_distance_m,
        )
    yield
    app.state.routing_service = None


app = FastAPI(title="Hazard-Aware Evacuation Router", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins() or ["*"],
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


def routing_service(request: Request) -> RoutingService:
    service: RoutingService | None = getattr(request.app.state, "routing_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Routing service not initialised")
    return service


RoutingServiceDep = Annotated[RoutingService, Depends(routing_service)]


def _error_payload(status_code: int, message: str, reason_code: str) -> dict[str, object]:
    body = ErrorResponse(
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        message=message,
        reason_code=reason_code,
    )
    return body.model_dump(by_alias=True)


@app.exception_handler(RoutingError)
async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    status_code = exc.status_code
    message = exc.message
    if isinstance(exc, DataLoadError):
        message = f"Server configuration error: {exc.message}"
    log_event(
        "request_failed",
        level=logging.ERROR if status_code >= 500 else logging.WARNING,
        path=request.url.path,
        status_code=status_code,
        reason_code=exc.reason_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(status_code, message, normalize_reason_code(exc.reason_code)),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_event(
        "request_failed",
        level=logging.ERROR,
        path=request.url.path,
        status_code=500,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content=_error_payload(
            500,
            "An unexpected error occurred. Please try again later.",
            "routing_service_unavailable",
        ),
    )


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Evacuation router is running. Visit /docs for the API UI.", "docs": "/docs"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics")
async def metrics() -> dict[str, object]:
    return metrics_snapshot()


def _parse_endpoint(raw: str | None, label: str) -> GeoPoint:
    if raw is None or not raw.strip():
        raise InvalidInputError(
            reason_code="missing_parameter",
            message=f"Missing required query parameter: {label}",
        )
    try:
        return GeoPoint.parse(raw)
    except InvalidInputError as exc:
        raise InvalidInputError(
            reason_code=exc.reason_code,
            message=f"Invalid {label} coordinate: {exc.message}",
            details=exc.details,
        ) from exc


# Plain ``def``: route computation is CPU bound and runs in the threadpool.
@app.get("/api/evac/route", response_model=RouteResult)
def evac_route(
    service: RoutingServiceDep,
    start: Annotated[str | None, Query(description="Start point as 'lat,lon'")] = None,
    end: Annotated[str | None, Query(description="End point as 'lat,lon'")] = None,
) -> RouteResult:
    t0 = time.perf_counter()
    try:
        start_point = _parse_endpoint(start, "start")
        end_point = _parse_endpoint(end, "end")
    except InvalidInputError:
        record_route_outcome("invalid_input", compute_ms=(time.perf_counter() - t0) * 1000.0)
        raise
    return service.compute_route(start_point, end_point)


@app.get("/api/evac/health", response_model=EvacHealthResponse)
def evac_health(service: RoutingServiceDep) -> EvacHealthResponse:
    info = service.graph_info()
    return EvacHealthResponse(
        status="ok",
        graph_nodes=info.node_count,
        graph_edges=info.edge_count,
        hazard_edges=info.hazard_edge_count,
    )
