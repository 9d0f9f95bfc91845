from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path
from threading import Lock
from typing import Protocol

from shapely.geometry.base import BaseGeometry

from .geojson_loader import load_hazard_zones
from .logging_utils import log_event
from .routing_errors import DataLoadError


class HazardZoneProvider(Protocol):
    def get_hazard_zones(self) -> list[BaseGeometry]:
        ...

    def refresh(self) -> None:
        ...

    @property
    def last_update_time(self) -> int:
        """Epoch milliseconds of the last successful load, or -1."""
        ...


class StaticHazardZoneProvider:
    """Fixed in-memory zones, for tests and embedding."""

    def __init__(self, zones: Iterable[BaseGeometry] = ()) -> None:
        self._zones = list(zones)
        self._loaded_at = int(time.time() * 1000)

    def get_hazard_zones(self) -> list[BaseGeometry]:
        return list(self._zones)

    def refresh(self) -> None:
        self._loaded_at = int(time.time() * 1000)

    @property
    def last_update_time(self) -> int:
        return self._loaded_at


class GeoJsonHazardZoneProvider:
    """Hazard polygons read from a local GeoJSON file.

    Loads lazily on first access. A failed load leaves an empty zone list and
    logs ``hazard_zones_load_failed``; routing then proceeds without hazards.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._lock = Lock()
        self._zones: list[BaseGeometry] = []
        self._loaded_at = -1
        self._attempted = False

    @property
    def path(self) -> str:
        return self._path

    def get_hazard_zones(self) -> list[BaseGeometry]:
        with self._lock:
            if not self._attempted:
                self._load_locked()
            return list(self._zones)

    def refresh(self) -> None:
        with self._lock:
            self._load_locked()

    @property
    def last_update_time(self) -> int:
        return self._loaded_at

    def _load_locked(self) -> None:
        self._attempted = True
        started = time.perf_counter()
        try:
            zones = load_hazard_zones(self._path)
        except DataLoadError as exc:
            self._zones = []
            log_event(
                "hazard_zones_load_failed",
                level=logging.ERROR,
                path=self._path,
                reason_code=exc.reason_code,
                error=exc.message,
            )
            return
        self._zones = zones
        self._loaded_at = int(time.time() * 1000)
        log_event(
            "hazard_zones_loaded",
            path=self._path,
            zone_count=len(zones),
            elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
        )
