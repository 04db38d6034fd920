"""Error budget reporting over the registry and the tracker.

Joins SLO definitions with the downtime recorded for their services and
keeps the budget gauges current.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from sentinel.errors import SLONotFoundError
from sentinel.models.slo import BurndownPoint, DowntimeEvent, ErrorBudgetResult, SLODefinition
from sentinel.observability.metrics import error_budget_burn_rate, error_budget_percent, forget_slo
from sentinel.slo.calculator import calculate_error_budget, generate_burndown_data
from sentinel.slo.registry import SLORegistry
from sentinel.slo.tracker import SLOTracker

_log = structlog.get_logger(component="slo.service")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SLOBudgetService:
    """Computes budgets, burndowns and threshold breaches for registered SLOs."""

    def __init__(
        self,
        registry: SLORegistry,
        tracker: SLOTracker,
        burndown_points: int = 30,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.registry = registry
        self.tracker = tracker
        self._burndown_points = burndown_points
        self._clock = clock

    def _require(self, slo_id: str) -> SLODefinition:
        slo = self.registry.get(slo_id)
        if slo is None:
            raise SLONotFoundError(slo_id)
        return slo

    def _evaluate(self, slo: SLODefinition) -> ErrorBudgetResult:
        result = calculate_error_budget(
            slo,
            self.tracker.get_incidents(slo.service_id),
            now=self._clock(),
        )
        error_budget_percent.labels(slo_id=slo.id, service_id=slo.service_id).set(result.budget_percent)
        error_budget_burn_rate.labels(slo_id=slo.id, service_id=slo.service_id).set(result.burndown_rate_per_day)
        return result

    def budget(self, slo_id: str) -> ErrorBudgetResult:
        return self._evaluate(self._require(slo_id))

    def burndown(self, slo_id: str, points: int | None = None) -> list[BurndownPoint]:
        slo = self._require(slo_id)
        return generate_burndown_data(
            slo,
            self.tracker.get_incidents(slo.service_id),
            points or self._burndown_points,
            now=self._clock(),
        )

    def overview(self) -> list[tuple[SLODefinition, ErrorBudgetResult]]:
        """Evaluate every registered SLO."""
        return [(slo, self._evaluate(slo)) for slo in self.registry.all()]

    def record_downtime(
        self,
        slo_id: str,
        downtime_minutes: float,
        description: str = "",
    ) -> tuple[DowntimeEvent, ErrorBudgetResult]:
        """Record downtime against an SLO's service and return the new budget."""
        slo = self._require(slo_id)
        event = self.tracker.record_downtime(slo.service_id, downtime_minutes, description)
        return event, self._evaluate(slo)

    def remove(self, slo_id: str) -> bool:
        """Delete an SLO together with its service's downtime history."""
        slo = self.registry.get(slo_id)
        if slo is None:
            return False
        self.registry.remove(slo_id)
        self.tracker.clear_service(slo.service_id)
        forget_slo(slo.id, slo.service_id)
        return True

    def breached(self) -> list[tuple[SLODefinition, ErrorBudgetResult]]:
        """Return SLOs whose remaining budget is at or below their alert threshold."""
        breaches = []
        for slo, result in self.overview():
            if result.budget_percent / 100 <= slo.alert_threshold:
                breaches.append((slo, result))
                _log.warning(
                    "error_budget_threshold_breached",
                    slo_id=slo.id,
                    service_id=slo.service_id,
                    budget_percent=result.budget_percent,
                    alert_threshold=slo.alert_threshold,
                    status=result.status.value,
                )
        return breaches
