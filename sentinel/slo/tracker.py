"""Downtime tracking per service.

Events model completed downtime: each is already resolved when recorded,
with ``created_at`` back-computed from its duration. Storage is an in-memory
append-only list per service and does not survive a restart.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from sentinel.errors import InvalidParametersError
from sentinel.models.slo import DowntimeEvent
from sentinel.observability.metrics import downtime_events_total

_log = structlog.get_logger(component="slo.tracker")

# (service_id, [(minutes, days_ago, description), ...])
_DEMO_DOWNTIME: list[tuple[str, list[tuple[float, int, str]]]] = [
    (
        "api-gateway",
        [
            (2, 12, "Brief connectivity timeout"),
            (0.5, 5, "Health check flap"),
            (1.5, 1, "Load balancer reconfiguration"),
        ],
    ),
    (
        "auth-service",
        [
            (5, 20, "Clock drift on auth-node-3"),
            (3, 8, "Token validation spike"),
            (1, 2, "Certificate renewal delay"),
        ],
    ),
    (
        "payment-service",
        [
            (15, 15, "Worker thread pool exhaustion"),
            (8, 6, "Database connection pool saturated"),
            (3, 1, "Payment gateway timeout"),
        ],
    ),
    (
        "notification-service",
        [
            (10, 18, "Email queue backlog overflow"),
            (4, 9, "Push notification provider outage"),
            (2, 3, "SMS rate limit exceeded"),
        ],
    ),
]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SLOTracker:
    """In-memory store of downtime events keyed by service id."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._store: dict[str, list[DowntimeEvent]] = {}
        self._lock = threading.Lock()

    def record_downtime(
        self,
        service_id: str,
        downtime_minutes: float,
        description: str = "",
    ) -> DowntimeEvent:
        """Append a completed downtime event for ``service_id``.

        Raises:
            InvalidParametersError: if ``service_id`` is empty or
                ``downtime_minutes`` is not a positive finite number
                or too large to place before ``now``.
        """
        if not service_id or not isinstance(service_id, str):
            raise InvalidParametersError("Invalid downtime parameters: serviceId is required")
        if (
            isinstance(downtime_minutes, bool)
            or not isinstance(downtime_minutes, (int, float))
            or not downtime_minutes > 0
            or not math.isfinite(downtime_minutes)
        ):
            raise InvalidParametersError(
                f"Invalid downtime parameters: positive finite downtime_minutes required, got {downtime_minutes!r}"
            )

        resolved_at = self._clock()
        try:
            created_at = resolved_at - timedelta(minutes=downtime_minutes)
        except OverflowError as exc:
            raise InvalidParametersError(
                f"Invalid downtime parameters: downtime_minutes out of range, got {downtime_minutes!r}"
            ) from exc
        event = DowntimeEvent(
            service_id=service_id,
            downtime_minutes=downtime_minutes,
            description=description,
            resolved_at=resolved_at,
            created_at=created_at,
        )
        with self._lock:
            self._store.setdefault(service_id, []).append(event)

        downtime_events_total.labels(service_id=service_id).inc()
        _log.info(
            "downtime_recorded",
            service_id=service_id,
            downtime_minutes=downtime_minutes,
            event_id=event.id,
        )
        return event

    def get_incidents(self, service_id: str, window_start: datetime | None = None) -> list[DowntimeEvent]:
        """Return a service's events resolved at or after ``window_start``."""
        with self._lock:
            events = list(self._store.get(service_id, []))
        if window_start is None:
            return events
        return [e for e in events if e.resolved_at >= window_start]

    def get_all_incidents(self) -> list[DowntimeEvent]:
        """Return every event across services, most recently resolved first."""
        with self._lock:
            events = [e for service_events in self._store.values() for e in service_events]
        return sorted(events, key=lambda e: e.resolved_at, reverse=True)

    def services(self) -> list[str]:
        with self._lock:
            return list(self._store)

    def clear_service(self, service_id: str) -> None:
        with self._lock:
            self._store.pop(service_id, None)

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()

    def seed_demo_data(self) -> int:
        """Load sample downtime history for the demo services.

        Returns:
            Number of events added.
        """
        now = self._clock()
        added = 0
        with self._lock:
            for service_id, samples in _DEMO_DOWNTIME:
                bucket = self._store.setdefault(service_id, [])
                for minutes, days_ago, description in samples:
                    resolved_at = now - timedelta(days=days_ago) + timedelta(minutes=minutes)
                    bucket.append(
                        DowntimeEvent(
                            service_id=service_id,
                            downtime_minutes=minutes,
                            description=description,
                            resolved_at=resolved_at,
                            created_at=resolved_at - timedelta(minutes=minutes),
                        )
                    )
                    added += 1
        _log.info("demo_downtime_seeded", events=added)
        return added
