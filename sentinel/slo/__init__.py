"""SLO package: error budget math, downtime tracking and SLO definitions."""

from sentinel.slo.calculator import (
    allowed_downtime_minutes,
    calculate_error_budget,
    classify_budget,
    generate_burndown_data,
)
from sentinel.slo.registry import SLORegistry, validate
from sentinel.slo.service import SLOBudgetService
from sentinel.slo.tracker import SLOTracker

__all__ = [
    "SLOBudgetService",
    "SLORegistry",
    "SLOTracker",
    "allowed_downtime_minutes",
    "calculate_error_budget",
    "classify_budget",
    "generate_burndown_data",
    "validate",
]
