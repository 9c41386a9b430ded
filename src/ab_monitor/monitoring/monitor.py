"""Statistical Monitor - periodic and on-demand analysis of live A/B tests.

The monitor owns the set of actively watched tests and their history. Every
registered test gets its own asyncio task that sleeps for the configured
interval and then runs one analysis tick. Ticks of the same test are
serialised by a per-test lock; ticks of different tests run independently,
with the statistical computation pushed to a worker thread.

Example:
    >>> monitor = StatisticalMonitor(
    ...     config=StatisticalConfig(monitoring_interval_ms=60_000),
    ...     baseline_provider=InMemoryBaselineProvider({"control": 0.05}),
    ... )
    >>> monitor.add_listener(MonitorEvent.ALERT, print)
    >>> await monitor.start_monitoring(metrics)
    >>> report = await monitor.trigger_analysis(metrics.test_id)
    >>> await monitor.shutdown()
"""

import asyncio
import dataclasses
import inspect
import random
import time
from collections import defaultdict
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from ab_monitor.core.config import get_settings
from ab_monitor.core.exceptions import (
    AnalysisError,
    InsufficientDataError,
    MonitorShutdownError,
)
from ab_monitor.core.logging import get_logger, log_context
from ab_monitor.core.protocols import BaselineProviderProtocol, MetricsCollectorProtocol
from ab_monitor.models import (
    AnomalyDetection,
    MonitoringAlert,
    StatisticalResult,
    TestMetrics,
)
from ab_monitor.monitoring.alerts.handlers import AlertDispatcher
from ab_monitor.monitoring.anomaly import AnomalyDetector
from ab_monitor.monitoring.decision import AnalysisReport, DecisionEngine
from ab_monitor.monitoring.metrics.collector import MetricsCollector
from ab_monitor.statistics.config import StatisticalConfig

logger = get_logger(__name__)


class MonitorEvent(Enum):
    """Signals emitted by the monitor."""

    MONITORING_STARTED = "monitoring_started"
    MONITORING_STOPPED = "monitoring_stopped"
    ANALYSIS_COMPLETE = "analysis_complete"
    ANALYSIS_ERROR = "analysis_error"
    ALERT = "alert"
    CONFIG_UPDATED = "config_updated"
    SERVICE_SHUTDOWN = "service_shutdown"


Listener = Callable[[Any], Any]


@dataclass
class _Schedule:
    """Periodic analysis loop of one test."""

    stop_event: asyncio.Event
    task: asyncio.Task


class StatisticalMonitor:
    """Continuously evaluate registered A/B tests.

    Listeners receive one payload argument:
    - MONITORING_STARTED / MONITORING_STOPPED: ``{"test_id": ...}``
    - ANALYSIS_COMPLETE: the tick's ``AnalysisReport``
    - ANALYSIS_ERROR: ``{"test_id": ..., "error": ..., "exception": ...}``
    - ALERT: a ``MonitoringAlert``
    - CONFIG_UPDATED: the new ``StatisticalConfig``
    - SERVICE_SHUTDOWN: ``{}``

    Listeners may be plain callables or coroutine functions.
    """

    def __init__(
        self,
        config: StatisticalConfig | Mapping[str, Any] | None = None,
        baseline_provider: BaselineProviderProtocol | None = None,
        dispatcher: AlertDispatcher | None = None,
        metrics_collector: MetricsCollectorProtocol | None = None,
        anomaly_detector: AnomalyDetector | None = None,
        max_history: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Statistical configuration, or a mapping of overrides that
                is validated into one.
            baseline_provider: Source of historical conversion rates.
            dispatcher: Alert dispatcher that receives every raised alert.
            metrics_collector: Prometheus collector (defaults from settings).
            anomaly_detector: Detector with custom thresholds.
            max_history: Results kept per test (defaults from settings).
            rng: Optional random generator for the Monte Carlo step.

        Raises:
            ConfigurationError: If ``config`` is a mapping with invalid values.
        """
        settings = get_settings()

        if config is None:
            config = StatisticalConfig()
        elif not isinstance(config, StatisticalConfig):
            config = StatisticalConfig.create(**config)

        self._config = config
        self._baseline_provider = baseline_provider
        self._dispatcher = dispatcher
        self._metrics = metrics_collector or MetricsCollector(enabled=settings.metrics_enabled)
        self._anomaly_detector = anomaly_detector or AnomalyDetector()
        if max_history is None:
            max_history = settings.max_history_per_test
        self._max_history = max_history
        self._rng = rng

        self._active_tests: dict[str, TestMetrics] = {}
        self._schedules: dict[str, _Schedule] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task] = set()

        self._results: dict[str, list[StatisticalResult]] = {}
        self._anomaly_history: dict[str, list[AnomalyDetection]] = {}
        self._alert_history: dict[str, list[MonitoringAlert]] = {}
        self._last_analysis: dict[str, datetime] = {}

        self._listeners: dict[MonitorEvent, list[Listener]] = defaultdict(list)
        self._closed = False

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, event: MonitorEvent, callback: Listener) -> None:
        """Subscribe to a monitor event.

        Args:
            event: Event to listen for.
            callback: Callable invoked with the event payload.
        """
        self._listeners[event].append(callback)

    def remove_listener(self, event: MonitorEvent, callback: Listener) -> bool:
        """Unsubscribe from a monitor event.

        Args:
            event: Event the callback was registered for.
            callback: Previously registered callable.

        Returns:
            True if the callback was removed.
        """
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            return False
        return True

    async def _emit(self, event: MonitorEvent, payload: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("listener_failed", monitor_event=event.value)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @property
    def is_closed(self) -> bool:
        """Whether ``shutdown()`` has been called."""
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise MonitorShutdownError()

    async def start_monitoring(self, metrics: TestMetrics) -> None:
        """Register a test and schedule periodic analysis.

        Re-registering an active test only replaces its metrics snapshot.

        Args:
            metrics: Initial metrics snapshot of the test.

        Raises:
            MonitorShutdownError: If the monitor has been shut down.
        """
        self._ensure_open()
        test_id = metrics.test_id
        self._active_tests[test_id] = metrics

        if test_id not in self._schedules:
            stop_event = asyncio.Event()
            task = asyncio.create_task(
                self._run_schedule(test_id, stop_event), name=f"abmon-{test_id}"
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            self._schedules[test_id] = _Schedule(stop_event=stop_event, task=task)
            logger.info(
                "monitoring_started",
                test_id=test_id,
                interval_ms=self._config.monitoring_interval_ms,
            )
        else:
            logger.debug("monitoring_snapshot_replaced", test_id=test_id)

        self._metrics.set_active_tests(len(self._schedules))
        await self._emit(MonitorEvent.MONITORING_STARTED, {"test_id": test_id})

    async def stop_monitoring(self, test_id: str) -> None:
        """Cancel a test's schedule and remove it from the active set.

        A tick already running is allowed to finish. Results stay queryable.

        Args:
            test_id: Test identifier.
        """
        schedule = self._schedules.pop(test_id, None)
        if schedule:
            schedule.stop_event.set()
        self._active_tests.pop(test_id, None)
        lock = self._locks.get(test_id)
        if lock is not None and not lock.locked():
            del self._locks[test_id]

        self._metrics.forget_test(test_id)
        self._metrics.set_active_tests(len(self._schedules))

        logger.info("monitoring_stopped", test_id=test_id)
        await self._emit(MonitorEvent.MONITORING_STOPPED, {"test_id": test_id})

    async def update_test_metrics(self, metrics: TestMetrics) -> AnalysisReport | None:
        """Replace a test's snapshot and analyse it immediately.

        Args:
            metrics: New metrics snapshot.

        Returns:
            The out-of-band tick's report, or None if the tick failed.

        Raises:
            MonitorShutdownError: If the monitor has been shut down.
        """
        self._ensure_open()
        stamped = dataclasses.replace(metrics, last_updated=datetime.now(UTC))
        self._active_tests[metrics.test_id] = stamped
        return await self._analyze_test(metrics.test_id)

    async def trigger_analysis(self, test_id: str) -> AnalysisReport | None:
        """Run one analysis cycle on demand.

        Args:
            test_id: Test identifier.

        Returns:
            The tick's report, or None if the test is unknown or the tick failed.

        Raises:
            MonitorShutdownError: If the monitor has been shut down.
        """
        self._ensure_open()
        return await self._analyze_test(test_id)

    async def shutdown(self) -> None:
        """Cancel every schedule and clear all in-memory state.

        The monitor is inert afterwards and must be reconstructed.
        """
        if self._closed:
            return
        self._closed = True

        for schedule in self._schedules.values():
            schedule.stop_event.set()
        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current]
        self._schedules.clear()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._active_tests.clear()
        self._locks.clear()
        self._results.clear()
        self._anomaly_history.clear()
        self._alert_history.clear()
        self._last_analysis.clear()
        self._metrics.set_active_tests(0)

        logger.info("service_shutdown")
        await self._emit(MonitorEvent.SERVICE_SHUTDOWN, {})
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Scheduling and analysis
    # ------------------------------------------------------------------

    async def _run_schedule(self, test_id: str, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(
                    stop_event.wait(),
                    timeout=self._config.monitoring_interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass

            if stop_event.is_set():
                break
            try:
                await self._analyze_test(test_id)
            except Exception:
                logger.exception("scheduled_tick_failed", test_id=test_id)

    async def _fetch_baselines(self, metrics: TestMetrics) -> dict[str, float | None]:
        if self._baseline_provider is None:
            return {}

        variation_ids = [v.variation_id for v in metrics.variations]
        rates = await asyncio.gather(
            *(self._baseline_provider.get_baseline_rate(vid) for vid in variation_ids),
            return_exceptions=True,
        )

        baselines: dict[str, float | None] = {}
        for variation_id, rate in zip(variation_ids, rates, strict=True):
            if isinstance(rate, Exception):
                logger.warning(
                    "baseline_lookup_failed",
                    variation_id=variation_id,
                    error=str(rate),
                )
                baselines[variation_id] = None
            else:
                baselines[variation_id] = rate
        return baselines

    async def _analyze_test(self, test_id: str) -> AnalysisReport | None:
        if test_id not in self._active_tests:
            logger.debug("analysis_skipped_inactive", test_id=test_id)
            return None

        lock = self._locks.get(test_id)
        if lock is None:
            lock = self._locks[test_id] = asyncio.Lock()

        try:
            async with lock:
                with log_context(test_id):
                    return await self._run_tick(test_id)
        finally:
            if test_id not in self._active_tests and not lock.locked():
                self._locks.pop(test_id, None)

    async def _run_tick(self, test_id: str) -> AnalysisReport | None:
        metrics = self._active_tests.get(test_id)
        if metrics is None:
            logger.debug("analysis_skipped_inactive")
            return None

        config = self._config
        started = time.perf_counter()

        try:
            baselines = await self._fetch_baselines(metrics)
            engine = DecisionEngine(config, self._anomaly_detector, self._rng)
            report = await asyncio.to_thread(engine.evaluate, metrics, baselines)
            elapsed = time.perf_counter() - started
            if not self._closed:
                await self._publish(report)
            self._metrics.record_analysis("success", elapsed)
        except InsufficientDataError as e:
            self._metrics.record_analysis("insufficient_data", time.perf_counter() - started)
            logger.warning("analysis_insufficient_data", error=e.message)
            await self._emit(
                MonitorEvent.ANALYSIS_ERROR,
                {"test_id": test_id, "error": e.message, "exception": e},
            )
            return None
        except Exception as e:
            error = AnalysisError(f"Analysis failed for test {test_id}: {e}", test_id=test_id)
            error.__cause__ = e
            self._metrics.record_analysis("error", time.perf_counter() - started)
            logger.exception("analysis_failed")
            await self._emit(
                MonitorEvent.ANALYSIS_ERROR,
                {"test_id": test_id, "error": error.message, "exception": error},
            )
            return None

        return report

    async def _publish(self, report: AnalysisReport) -> None:
        self._record(report)
        self._metrics.update_test_state(report.test_id, report)

        logger.info(
            "analysis_complete",
            recommended_action=report.recommended_action.value,
            p_value=report.frequentist.p_value,
            risk_level=report.anomalies.risk_level.value,
            alerts=len(report.alerts),
        )

        for alert in report.alerts:
            self._metrics.record_alert(alert.alert_type.value, alert.severity.value)
            if self._dispatcher is not None:
                await self._dispatcher.dispatch(alert)
            await self._emit(MonitorEvent.ALERT, alert)

        await self._emit(MonitorEvent.ANALYSIS_COMPLETE, report)

    def _record(self, report: AnalysisReport) -> None:
        test_id = report.test_id
        self._results.setdefault(test_id, []).extend(report.results)
        self._anomaly_history.setdefault(test_id, []).append(report.anomalies)
        self._alert_history.setdefault(test_id, []).extend(report.alerts)
        self._last_analysis[test_id] = report.timestamp

        if self._max_history is not None:
            self.prune_history(test_id, self._max_history)

    # ------------------------------------------------------------------
    # Queries and configuration
    # ------------------------------------------------------------------

    def get_active_tests(self) -> list[str]:
        """IDs of tests with a stored metrics snapshot."""
        return list(self._active_tests)

    def get_test_results(self, test_id: str) -> list[StatisticalResult]:
        """Statistical results of a test, oldest first."""
        return list(self._results.get(test_id, []))

    def get_anomaly_history(self, test_id: str) -> list[AnomalyDetection]:
        """Anomaly reports of a test, oldest first."""
        return list(self._anomaly_history.get(test_id, []))

    def get_alert_history(self, test_id: str) -> list[MonitoringAlert]:
        """Alerts raised for a test, oldest first."""
        return list(self._alert_history.get(test_id, []))

    def prune_history(self, test_id: str, keep_last: int) -> int:
        """Drop all but the newest entries of a test's histories.

        Args:
            test_id: Test identifier.
            keep_last: Number of entries to keep in each history.

        Returns:
            Number of entries removed across all histories.
        """
        if keep_last < 0:
            raise ValueError("keep_last must be >= 0")

        removed = 0
        for history in (self._results, self._anomaly_history, self._alert_history):
            entries = history.get(test_id)
            if entries and len(entries) > keep_last:
                removed += len(entries) - keep_last
                history[test_id] = entries[len(entries) - keep_last :]
        return removed

    def get_monitoring_status(self) -> list[dict[str, Any]]:
        """Status of every stored test.

        Returns:
            List of dictionaries with ``test_id``, ``is_active`` (periodic
            schedule running), ``last_updated`` and ``last_analysis``.
        """
        return [
            {
                "test_id": test_id,
                "is_active": test_id in self._schedules,
                "last_updated": metrics.last_updated,
                "last_analysis": self._last_analysis.get(test_id),
            }
            for test_id, metrics in self._active_tests.items()
        ]

    def get_configuration(self) -> StatisticalConfig:
        """Current statistical configuration."""
        return self._config

    async def update_configuration(self, **changes: Any) -> StatisticalConfig:
        """Hot-replace the configuration.

        Affects ticks that start afterwards; stored history is unchanged.

        Args:
            **changes: Field overrides.

        Returns:
            The new configuration.

        Raises:
            ConfigurationError: If any value is invalid (old config is kept).
        """
        self._config = self._config.merged(**changes)
        logger.info("config_updated", changes=changes)
        await self._emit(MonitorEvent.CONFIG_UPDATED, self._config)
        return self._config
