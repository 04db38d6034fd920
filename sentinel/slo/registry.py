"""SLO definition store with schema validation."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import structlog

from sentinel.errors import SLOValidationError
from sentinel.models.slo import SLODefinition, TrackingWindow

_log = structlog.get_logger(component="slo.registry")

MIN_TARGET = 90.0
MAX_TARGET = 99.999
DEFAULT_ALERT_THRESHOLD = 0.25

VALID_WINDOWS = [w.value for w in TrackingWindow]

_MUTABLE_FIELDS = (
    "service_id",
    "service_name",
    "target_availability",
    "tracking_window",
    "alert_threshold",
    "include_scheduled_maintenance",
)

_DEMO_SLOS: list[dict[str, Any]] = [
    {
        "service_id": "api-gateway",
        "service_name": "API Gateway",
        "target_availability": 99.95,
        "tracking_window": "1month",
    },
    {
        "service_id": "auth-service",
        "service_name": "Auth Service",
        "target_availability": 99.9,
        "tracking_window": "1month",
    },
    {
        "service_id": "payment-service",
        "service_name": "Payment Service",
        "target_availability": 99.9,
        "tracking_window": "1month",
    },
    {
        "service_id": "notification-service",
        "service_name": "Notification Service",
        "target_availability": 99.5,
        "tracking_window": "7days",
    },
]


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate(data: Mapping[str, Any]) -> list[str]:
    """Return every validation problem with an SLO payload (empty when valid)."""
    errors: list[str] = []

    service_id = data.get("service_id")
    if not service_id or not isinstance(service_id, str):
        errors.append("service_id is required and must be a string")

    target = data.get("target_availability")
    if target is None or not _is_number(target):
        errors.append("target_availability is required and must be a number")
    elif not MIN_TARGET <= target <= MAX_TARGET:
        errors.append(f"target_availability must be between {MIN_TARGET:g} and {MAX_TARGET:g}")

    if data.get("tracking_window") not in VALID_WINDOWS:
        errors.append(f"tracking_window must be one of: {', '.join(VALID_WINDOWS)}")

    threshold = data.get("alert_threshold")
    if threshold is not None and (not _is_number(threshold) or not 0 <= threshold <= 1):
        errors.append("alert_threshold must be a number between 0 and 1")

    maintenance = data.get("include_scheduled_maintenance")
    if maintenance is not None and not isinstance(maintenance, bool):
        errors.append("include_scheduled_maintenance must be a boolean")

    service_name = data.get("service_name")
    if service_name is not None and not isinstance(service_name, str):
        errors.append("service_name must be a string")

    return errors


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SLORegistry:
    """Owns the SLO definitions of one process."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._slos: dict[str, SLODefinition] = {}
        self._lock = threading.Lock()

    def create(self, data: Mapping[str, Any]) -> SLODefinition:
        """Validate ``data`` and store a new definition.

        Raises:
            SLOValidationError: listing every invalid field.
        """
        errors = validate(data)
        if errors:
            raise SLOValidationError(errors)

        now = self._clock()
        slo = SLODefinition(
            service_id=data["service_id"],
            service_name=data.get("service_name") or data["service_id"],
            target_availability=data["target_availability"],
            tracking_window=TrackingWindow(data["tracking_window"]),
            alert_threshold=(
                data["alert_threshold"] if data.get("alert_threshold") is not None else DEFAULT_ALERT_THRESHOLD
            ),
            include_scheduled_maintenance=bool(data.get("include_scheduled_maintenance", False)),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._slos[slo.id] = slo
        _log.info("slo_created", slo_id=slo.id, service_id=slo.service_id, target=slo.target_availability)
        return slo

    def get(self, slo_id: str) -> SLODefinition | None:
        with self._lock:
            return self._slos.get(slo_id)

    def get_by_service(self, service_id: str) -> SLODefinition | None:
        with self._lock:
            return next((s for s in self._slos.values() if s.service_id == service_id), None)

    def all(self) -> list[SLODefinition]:
        with self._lock:
            return list(self._slos.values())

    def update(self, slo_id: str, data: Mapping[str, Any]) -> SLODefinition | None:
        """Merge ``data`` into an existing definition.

        ``id`` and ``created_at`` never change. Returns None when ``slo_id``
        is unknown.

        Raises:
            SLOValidationError: if the merged definition is invalid.
        """
        with self._lock:
            existing = self._slos.get(slo_id)
            if existing is None:
                return None

            merged = {name: getattr(existing, name) for name in _MUTABLE_FIELDS}
            merged["tracking_window"] = str(existing.tracking_window)
            merged.update({k: v for k, v in data.items() if k in _MUTABLE_FIELDS})
            errors = validate(merged)
            if errors:
                raise SLOValidationError(errors)

            merged["tracking_window"] = TrackingWindow(merged["tracking_window"])
            updated = replace(existing, **merged, updated_at=self._clock())
            self._slos[slo_id] = updated

        _log.info("slo_updated", slo_id=slo_id, fields=sorted(k for k in data if k in _MUTABLE_FIELDS))
        return updated

    def remove(self, slo_id: str) -> bool:
        with self._lock:
            removed = self._slos.pop(slo_id, None) is not None
        if removed:
            _log.info("slo_removed", slo_id=slo_id)
        return removed

    def seed_demo_data(self) -> list[SLODefinition]:
        return [self.create(entry) for entry in _DEMO_SLOS]
