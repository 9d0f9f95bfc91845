from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from threading import Lock


@dataclass
class OutcomeStats:
    count: int = 0
    total_compute_ms: float = 0.0
    max_compute_ms: float = 0.0
    hazard_segments_traversed: int = 0


class RouteOutcomeStore:
    """In-process counters for route requests, keyed by outcome."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._created_at = datetime.now(UTC).isoformat()
        self._outcomes: dict[str, OutcomeStats] = {}

    def record(
        self,
        outcome: str,
        *,
        compute_ms: float = 0.0,
        hazard_segments_traversed: int = 0,
    ) -> None:
        name = outcome.strip() or "error"
        c_ms = max(float(compute_ms), 0.0)

        with self._lock:
            stats = self._outcomes.setdefault(name, OutcomeStats())
            stats.count += 1
            stats.total_compute_ms += c_ms
            if c_ms > stats.max_compute_ms:
                stats.max_compute_ms = c_ms
            stats.hazard_segments_traversed += max(int(hazard_segments_traversed), 0)

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            outcomes: dict[str, dict[str, float | int]] = {}
            total = 0
            for name in sorted(self._outcomes):
                stats = self._outcomes[name]
                total += stats.count
                avg_ms = stats.total_compute_ms / stats.count if stats.count else 0.0
                outcomes[name] = {
                    "count": stats.count,
                    "total_compute_ms": round(stats.total_compute_ms, 3),
                    "avg_compute_ms": round(avg_ms, 3),
                    "max_compute_ms": round(stats.max_compute_ms, 3),
                    "hazard_segments_traversed": stats.hazard_segments_traversed,
                }

            ok = outcomes.get("ok", {}).get("count", 0)
            return {
                "created_at": self._created_at,
                "total_routes": total,
                "successful_routes": ok,
                "failed_routes": total - ok,
                "outcomes": outcomes,
            }

    def reset(self) -> None:
        with self._lock:
            self._created_at = datetime.now(UTC).isoformat()
            self._outcomes.clear()


METRICS = RouteOutcomeStore()


def record_route_outcome(
    outcome: str,
    *,
    compute_ms: float = 0.0,
    hazard_segments_traversed: int = 0,
) -> None:
    METRICS.record(outcome, compute_ms=compute_ms, hazard_segments_traversed=hazard_segments_traversed)


def metrics_snapshot() -> dict[str, object]:
    return METRICS.snapshot()


def reset_metrics() -> None:
    METRICS.reset()
