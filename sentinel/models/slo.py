"""SLO, downtime and error-budget data structures."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4


class TrackingWindow(StrEnum):
    """Supported SLO tracking windows."""

    ONE_DAY = "1day"
    SEVEN_DAYS = "7days"
    ONE_MONTH = "1month"


# Nominal sizes: a month is always 30 days.
WINDOW_MINUTES: dict[str, int] = {
    TrackingWindow.ONE_DAY: 24 * 60,
    TrackingWindow.SEVEN_DAYS: 7 * 24 * 60,
    TrackingWindow.ONE_MONTH: 30 * 24 * 60,
}


class BudgetStatus(StrEnum):
    """Error budget health classification."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    EXHAUSTED = "exhausted"


@dataclass
class SLODefinition:
    """An availability objective for one service.

    ``id`` and ``created_at`` are fixed at creation; the remaining fields may
    change through ``SLORegistry.update``.
    """

    service_id: str
    target_availability: float
    tracking_window: str
    service_name: str = ""
    alert_threshold: float = 0.25
    include_scheduled_maintenance: bool = False
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "service_id": self.service_id,
            "service_name": self.service_name or self.service_id,
            "target_availability": self.target_availability,
            "tracking_window": str(self.tracking_window),
            "alert_threshold": self.alert_threshold,
            "include_scheduled_maintenance": self.include_scheduled_maintenance,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class DowntimeEvent:
    """A completed stretch of downtime for a service. Append-only."""

    service_id: str
    downtime_minutes: float
    resolved_at: datetime
    created_at: datetime
    description: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "service_id": self.service_id,
            "downtime_minutes": self.downtime_minutes,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "resolved_at": self.resolved_at.isoformat(),
        }


@dataclass(frozen=True)
class ErrorBudgetResult:
    """Read model of an SLO's error budget at a point in time."""

    target_availability: float
    current_availability: float
    tracking_window: str
    window_minutes: int
    allowed_downtime_minutes: float
    used_downtime_minutes: float
    remaining_minutes: float
    budget_percent: float
    burndown_rate_per_day: float
    projected_exhaustion_date: datetime | None
    incident_count: int
    status: BudgetStatus

    def to_dict(self) -> dict[str, object]:
        return {
            "target_availability": self.target_availability,
            "current_availability": self.current_availability,
            "tracking_window": str(self.tracking_window),
            "window_minutes": self.window_minutes,
            "allowed_downtime_minutes": self.allowed_downtime_minutes,
            "used_downtime_minutes": self.used_downtime_minutes,
            "remaining_minutes": self.remaining_minutes,
            "budget_percent": self.budget_percent,
            # JSON has no infinity
            "burndown_rate_per_day": (
                self.burndown_rate_per_day if math.isfinite(self.burndown_rate_per_day) else None
            ),
            "projected_exhaustion_date": (
                self.projected_exhaustion_date.isoformat() if self.projected_exhaustion_date else None
            ),
            "incident_count": self.incident_count,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class BurndownPoint:
    """One sample of the budget burndown chart."""

    timestamp: datetime
    budget_percent: float
    used_minutes: float

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "budget_percent": self.budget_percent,
            "used_minutes": self.used_minutes,
        }
