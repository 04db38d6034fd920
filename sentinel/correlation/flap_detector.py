"""Flap detection for container health state.

The caller records a flip every time a container's health changes. Once
``max_flips`` flips sit inside the trailing window the container is
suppressed: its alerts should be dropped until the flips age out or a
healthy reading arrives.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import structlog

from sentinel.errors import InvalidParametersError
from sentinel.models.alerts import FlapResult, FlapState

_log = structlog.get_logger(component="correlation.flap_detector")

_DEFAULT_WINDOW = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class FlapDetector:
    """Counts health flips per container inside a trailing window."""

    def __init__(
        self,
        max_flips: int = 3,
        window: timedelta = _DEFAULT_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_flips < 1:
            raise InvalidParametersError(f"max_flips must be at least 1, got {max_flips}")
        if window <= timedelta(0):
            raise InvalidParametersError(f"flap window must be positive, got {window}")
        self.max_flips = max_flips
        self.window = window
        self._clock = clock
        self._history: dict[str, FlapState] = {}
        self._lock = threading.Lock()

    def record(self, container_id: str, is_healthy: bool) -> FlapResult:
        """Record one health flip and report whether alerts should be dropped."""
        now = self._clock()
        with self._lock:
            state = self._history.setdefault(container_id, FlapState())
            state.flips = [t for t in state.flips if now - t < self.window]

            # Flips aged out of the window
            if state.suppressed and len(state.flips) < self.max_flips:
                state.suppressed = False
                _log.info("flap_suppression_expired", container_id=container_id)

            if state.suppressed and is_healthy:
                state.flips = []
                state.suppressed = False
                _log.info("flap_suppression_cleared", container_id=container_id, reason="healthy_reading")
                return FlapResult(flapping=False, suppress_alert=False)

            if len(state.flips) >= self.max_flips:
                if not state.suppressed:
                    _log.warning(
                        "container_flapping",
                        container_id=container_id,
                        flips=len(state.flips),
                        window_seconds=int(self.window.total_seconds()),
                    )
                state.suppressed = True
                state.flips.append(now)
                return FlapResult(flapping=True, suppress_alert=True)

            state.flips.append(now)
            return FlapResult(flapping=False, suppress_alert=state.suppressed)

    def clear(self, container_id: str) -> None:
        """Forget a container's history.

        Must be called when monitoring of the container stops so that stale
        flips do not carry over into a later restart of monitoring.
        """
        with self._lock:
            self._history.pop(container_id, None)

    def state(self, container_id: str) -> FlapState | None:
        """Return a copy of the container's flap state, if any."""
        with self._lock:
            state = self._history.get(container_id)
            if state is None:
                return None
            return replace(state, flips=list(state.flips))

    def is_suppressed(self, container_id: str) -> bool:
        with self._lock:
            state = self._history.get(container_id)
            return state is not None and state.suppressed
