"""Error budget math.

Pure functions of (SLO definition, downtime records, current time). Tracking
windows have nominal sizes (a month is 30 days); every incident whose
resolution (or creation, if unresolved) falls inside ``[now - window, now]``
counts against the budget.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from sentinel.errors import InvalidParametersError, InvalidTrackingWindowError
from sentinel.models.slo import (
    WINDOW_MINUTES,
    BudgetStatus,
    BurndownPoint,
    ErrorBudgetResult,
)

_EPOCH = datetime.fromtimestamp(0, tz=UTC)

_CRITICAL_PERCENT = 25.0
_WARNING_PERCENT = 50.0


def calculate_error_budget(
    slo: Any,
    incidents: Iterable[Any] = (),
    *,
    now: datetime | None = None,
) -> ErrorBudgetResult:
    """Compute the error budget for ``slo`` over its trailing window.

    Args:
        slo:       SLODefinition, or a mapping with ``target_availability``
                   and ``tracking_window``.
        incidents: DowntimeEvents, or mappings with ``downtime_minutes`` (or
                   ``mttr_seconds``) and ``resolved_at`` / ``created_at``.
        now:       Evaluation time; defaults to the current UTC time.

    Raises:
        InvalidTrackingWindowError: if the tracking window is unknown.
    """
    target, window = _slo_fields(slo)
    window_minutes = window_minutes_for(window)
    now = now or datetime.now(tz=UTC)
    window_start = now - timedelta(minutes=window_minutes)

    allowed = window_minutes * (1 - target / 100)
    relevant = [i for i in incidents if window_start <= incident_time(i) <= now]
    used = sum(incident_minutes(i) for i in relevant)

    # A 100% target leaves no budget: any downtime at all exhausts it.
    if allowed == 0:
        burned = used > 0
        return ErrorBudgetResult(
            target_availability=target,
            current_availability=(
                _round_half_up((window_minutes - used) / window_minutes * 100, 3) if burned else 100.0
            ),
            tracking_window=window,
            window_minutes=window_minutes,
            allowed_downtime_minutes=0.0,
            used_downtime_minutes=_round_half_up(used, 2),
            remaining_minutes=0.0,
            budget_percent=0.0 if burned else 100.0,
            burndown_rate_per_day=math.inf if burned else 0.0,
            projected_exhaustion_date=now if burned else None,
            incident_count=len(relevant),
            status=BudgetStatus.EXHAUSTED if burned else BudgetStatus.HEALTHY,
        )

    remaining = max(0.0, allowed - used)
    budget_percent = remaining / allowed * 100
    current_availability = (window_minutes - used) / window_minutes * 100

    # The window is trailing, so the elapsed time is always the full window.
    elapsed_days = (now - window_start) / timedelta(days=1)
    burn_rate = (used / allowed * 100) / elapsed_days if elapsed_days > 0 else 0.0

    projected: datetime | None = None
    if burn_rate > 0 and budget_percent > 0:
        projected = now + timedelta(days=budget_percent / burn_rate)

    return ErrorBudgetResult(
        target_availability=target,
        current_availability=_round_half_up(current_availability, 3),
        tracking_window=window,
        window_minutes=window_minutes,
        allowed_downtime_minutes=_round_half_up(allowed, 2),
        used_downtime_minutes=_round_half_up(used, 2),
        remaining_minutes=_round_half_up(remaining, 2),
        budget_percent=_round_half_up(budget_percent, 1),
        burndown_rate_per_day=_round_half_up(burn_rate, 2),
        projected_exhaustion_date=projected,
        incident_count=len(relevant),
        status=classify_budget(budget_percent),
    )


def generate_burndown_data(
    slo: Any,
    incidents: Iterable[Any] = (),
    points: int = 30,
    *,
    now: datetime | None = None,
) -> list[BurndownPoint]:
    """Sample the remaining budget at ``points`` evenly spaced times.

    Samples start at the beginning of the window; each shows the downtime
    accumulated up to and including its timestamp.
    """
    if isinstance(points, bool) or not isinstance(points, int) or points < 1:
        raise InvalidParametersError(f"points must be a positive integer, got {points!r}")

    target, window = _slo_fields(slo)
    window_minutes = window_minutes_for(window)
    now = now or datetime.now(tz=UTC)
    window_length = timedelta(minutes=window_minutes)
    window_start = now - window_length
    allowed = window_minutes * (1 - target / 100)

    timeline = sorted(
        ((incident_time(i), incident_minutes(i)) for i in incidents if window_start <= incident_time(i) <= now),
        key=lambda pair: pair[0],
    )

    interval = window_length / points
    data: list[BurndownPoint] = []
    cursor = 0
    cumulative = 0.0
    for index in range(points):
        sampled_at = window_start + interval * index
        while cursor < len(timeline) and timeline[cursor][0] <= sampled_at:
            cumulative += timeline[cursor][1]
            cursor += 1

        if allowed > 0:
            budget_percent = max(0.0, allowed - cumulative) / allowed * 100
        else:
            budget_percent = 0.0 if cumulative > 0 else 100.0

        data.append(
            BurndownPoint(
                timestamp=sampled_at,
                budget_percent=_round_half_up(budget_percent, 1),
                used_minutes=_round_half_up(cumulative, 2),
            )
        )
    return data


def allowed_downtime_minutes(slo: Any) -> float:
    """Return the downtime an SLO allows over its window, in minutes."""
    target, window = _slo_fields(slo)
    return _round_half_up(window_minutes_for(window) * (1 - target / 100), 2)


def window_minutes_for(window: object) -> int:
    """Return the nominal size of a tracking window in minutes."""
    minutes = WINDOW_MINUTES.get(window) if isinstance(window, str) else None
    if not minutes:
        raise InvalidTrackingWindowError(window, [str(w) for w in WINDOW_MINUTES])
    return minutes


def classify_budget(budget_percent: float) -> BudgetStatus:
    if budget_percent <= 0:
        return BudgetStatus.EXHAUSTED
    if budget_percent <= _CRITICAL_PERCENT:
        return BudgetStatus.CRITICAL
    if budget_percent <= _WARNING_PERCENT:
        return BudgetStatus.WARNING
    return BudgetStatus.HEALTHY


def incident_time(incident: Any) -> datetime:
    """When an incident counts against the budget: resolution, else creation."""
    resolved = _field(incident, "resolved_at")
    if resolved is not None:
        return resolved
    created = _field(incident, "created_at")
    return created if created is not None else _EPOCH


def incident_minutes(incident: Any) -> float:
    """Downtime of an incident in minutes, falling back to MTTR."""
    minutes = _field(incident, "downtime_minutes")
    if minutes:
        return float(minutes)
    mttr_seconds = _field(incident, "mttr_seconds")
    return float(mttr_seconds) / 60 if mttr_seconds else 0.0


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _slo_fields(slo: Any) -> tuple[float, str]:
    target = _field(slo, "target_availability")
    if isinstance(target, bool) or not isinstance(target, (int, float)):
        raise InvalidParametersError(f"target_availability must be a number, got {target!r}")
    return float(target), _field(slo, "tracking_window")


def _round_half_up(value: float, decimals: int) -> float:
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor
