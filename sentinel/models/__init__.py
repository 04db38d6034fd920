"""Core data structures for Sentinel."""

from sentinel.models.alerts import (
    Alert,
    CorrelationGroup,
    CorrelationSignal,
    FlapResult,
    FlapState,
)
from sentinel.models.config import SentinelConfig
from sentinel.models.slo import (
    WINDOW_MINUTES,
    BudgetStatus,
    BurndownPoint,
    DowntimeEvent,
    ErrorBudgetResult,
    SLODefinition,
    TrackingWindow,
)

__all__ = [
    "WINDOW_MINUTES",
    "Alert",
    "BudgetStatus",
    "BurndownPoint",
    "CorrelationGroup",
    "CorrelationSignal",
    "DowntimeEvent",
    "ErrorBudgetResult",
    "FlapResult",
    "FlapState",
    "SLODefinition",
    "SentinelConfig",
    "TrackingWindow",
]
