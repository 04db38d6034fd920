"""Application bootstrap for Sentinel.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → dependency graph → flap detector
              → correlator → health pipeline → SLO registry/tracker
              → budget service → metrics exporter → budget evaluator

Shutdown cancels background tasks in reverse order and drops component
references so that a stopped app holds no state.
"""

from __future__ import annotations

import asyncio
import signal
from datetime import timedelta
from typing import TYPE_CHECKING

from sentinel.config import load_config
from sentinel.correlation import AlertCorrelator, FlapDetector
from sentinel.graph import DependencyGraph
from sentinel.models.config import SentinelConfig
from sentinel.monitor import HealthPipeline
from sentinel.observability.logging import get_logger, setup_logging
from sentinel.slo import SLOBudgetService, SLORegistry, SLOTracker

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class SentinelApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that was never started or has
    already stopped.
    """

    def __init__(self, config: SentinelConfig | None = None) -> None:
        self.config = config

        self.dependency_graph: DependencyGraph | None = None
        self.flap_detector: FlapDetector | None = None
        self.correlator: AlertCorrelator | None = None
        self.pipeline: HealthPipeline | None = None
        self.slo_registry: SLORegistry | None = None
        self.slo_tracker: SLOTracker | None = None
        self.slo_service: SLOBudgetService | None = None

        self._background_tasks: list[asyncio.Task[None]] = []
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        if self.config is None:
            self.config = load_config()

        setup_logging(self.config.log.level, self.config.log.format)
        self._log = get_logger("app")
        self._log.info("sentinel starting", version=_sentinel_version())

        self._start_correlation()
        self._start_slo()
        self._start_metrics_exporter()
        self._start_budget_evaluator()

        self._running = True
        self._log.info("sentinel started")

    def _start_correlation(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            self.dependency_graph = DependencyGraph()
            self.flap_detector = FlapDetector(
                max_flips=self.config.flap.max_flips,
                window=timedelta(seconds=self.config.flap.window_seconds),
            )
            self.correlator = AlertCorrelator(
                self.dependency_graph,
                window=timedelta(seconds=self.config.correlation.window_seconds),
            )
            self.pipeline = HealthPipeline(self.flap_detector, self.correlator, self.dependency_graph)
            self._log.info(
                "correlation started",
                max_flips=self.config.flap.max_flips,
                correlation_window=self.config.correlation.window_seconds,
            )
        except Exception as exc:
            raise _ComponentError("correlation", exc) from exc

    def _start_slo(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            self.slo_registry = SLORegistry()
            self.slo_tracker = SLOTracker()
            if self.config.slo.seed_demo_data:
                self.slo_registry.seed_demo_data()
                self.slo_tracker.seed_demo_data()
            self.slo_service = SLOBudgetService(
                self.slo_registry,
                self.slo_tracker,
                burndown_points=self.config.slo.burndown_points,
            )
            self._log.info("slo tracking started", slos=len(self.slo_registry.all()))
        except Exception as exc:
            raise _ComponentError("slo", exc) from exc

    def _start_metrics_exporter(self) -> None:
        """Expose Prometheus metrics when enabled. Non-fatal on failure."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.metrics.enabled:
            self._log.info("metrics exporter disabled")
            return
        try:
            from sentinel.observability.metrics import start_metrics_server

            start_metrics_server(self.config.metrics.port)
            self._log.info("metrics exporter started", port=self.config.metrics.port)
        except OSError as exc:
            self._log.warning("metrics exporter failed to start", port=self.config.metrics.port, error=str(exc))

    def _start_budget_evaluator(self) -> None:
        """Launch a periodic task that re-evaluates every SLO budget."""
        assert self._log is not None
        assert self.config is not None
        interval = self.config.slo.evaluation_interval

        async def _evaluator() -> None:
            while True:
                self.evaluate_budgets()
                await asyncio.sleep(interval)

        task = asyncio.create_task(_evaluator(), name="budget-evaluator")
        self._background_tasks.append(task)
        self._log.info("budget evaluator started", interval=interval)

    def evaluate_budgets(self) -> int:
        """Refresh budget gauges and log breaches. Returns the breach count."""
        if self.slo_service is None:
            return 0
        log = self._log or get_logger("app")
        try:
            breaches = self.slo_service.breached()
        except Exception as exc:
            log.error("budget evaluation failed", error=str(exc))
            return 0
        log.debug("budgets evaluated", breaches=len(breaches))
        return len(breaches)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop background work and release components in reverse order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("sentinel shutting down")
        self._running = False

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()
        if self._background_tasks:
            try:
                await asyncio.wait_for(
                    asyncio.gather(*self._background_tasks, return_exceptions=True),
                    timeout=_SHUTDOWN_GRACE_SECONDS,
                )
            except TimeoutError:
                log.warning("background tasks did not stop in time", timeout=_SHUTDOWN_GRACE_SECONDS)
        self._background_tasks.clear()

        self.slo_service = None
        self.slo_tracker = None
        self.slo_registry = None
        self.pipeline = None
        self.correlator = None
        self.flap_detector = None
        self.dependency_graph = None

        log.info("sentinel stopped")


def _sentinel_version() -> str:
    from sentinel import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = SentinelApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app.running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()


def run() -> None:
    """Console-script entry point (``sentinel``)."""
    asyncio.run(main())
