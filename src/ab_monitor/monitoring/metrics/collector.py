"""Prometheus Metrics Collector - experiment monitoring metrics."""

import logging

from prometheus_client import Counter, Gauge, Histogram

from ab_monitor.monitoring.decision import AnalysisReport

logger = logging.getLogger(__name__)


ANALYSES_TOTAL = Counter(
    "abmon_analyses_total",
    "Analysis ticks by outcome",
    ["outcome"],
)

ANALYSIS_DURATION = Histogram(
    "abmon_analysis_duration_seconds",
    "Wall time of one analysis tick",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ALERTS_TOTAL = Counter(
    "abmon_alerts_total",
    "Monitoring alerts raised",
    ["alert_type", "severity"],
)

ACTIVE_TESTS = Gauge(
    "abmon_active_tests",
    "Number of tests under periodic monitoring",
)

CURRENT_POWER = Gauge(
    "abmon_current_power",
    "Achieved statistical power of a test",
    ["test_id"],
)

P_VALUE = Gauge(
    "abmon_p_value",
    "Latest frequentist p-value of a test",
    ["test_id"],
)

ANOMALY_RISK = Gauge(
    "abmon_anomaly_risk",
    "Anomaly risk level of a test (0=low, 3=critical)",
    ["test_id"],
)


class MetricsCollector:
    """Update Prometheus metrics for the statistical monitor.

    Example:
        >>> collector = MetricsCollector()
        >>> collector.record_analysis("success", 0.12)
        >>> collector.update_test_state("checkout-cta", report)
    """

    def __init__(self, enabled: bool = True) -> None:
        """Initialize the collector.

        Args:
            enabled: When False every call is a no-op.
        """
        self.enabled = enabled

    def record_analysis(self, outcome: str, duration_seconds: float) -> None:
        """Record one analysis tick.

        Args:
            outcome: "success", "insufficient_data" or "error".
            duration_seconds: Wall time of the tick.
        """
        if not self.enabled:
            return
        ANALYSES_TOTAL.labels(outcome=outcome).inc()
        ANALYSIS_DURATION.observe(duration_seconds)

    def record_alert(self, alert_type: str, severity: str) -> None:
        """Record a raised alert.

        Args:
            alert_type: Alert type value.
            severity: Alert severity value.
        """
        if not self.enabled:
            return
        ALERTS_TOTAL.labels(alert_type=alert_type, severity=severity).inc()

    def update_test_state(self, test_id: str, report: AnalysisReport) -> None:
        """Update per-test gauges from an analysis report.

        Args:
            test_id: Test identifier.
            report: The tick's analysis report.
        """
        if not self.enabled:
            return
        CURRENT_POWER.labels(test_id=test_id).set(report.power_analysis.current_power)
        if report.frequentist.p_value is not None:
            P_VALUE.labels(test_id=test_id).set(report.frequentist.p_value)
        ANOMALY_RISK.labels(test_id=test_id).set(report.anomalies.risk_level.score)

    def set_active_tests(self, count: int) -> None:
        """Update the number of actively monitored tests.

        Args:
            count: Number of active tests.
        """
        if not self.enabled:
            return
        ACTIVE_TESTS.set(count)

    def forget_test(self, test_id: str) -> None:
        """Drop the per-test gauge series of a test.

        Args:
            test_id: Test identifier.
        """
        if not self.enabled:
            return
        for gauge in (CURRENT_POWER, P_VALUE, ANOMALY_RISK):
            try:
                gauge.remove(test_id)
            except KeyError:
                logger.debug(f"No gauge series to drop for test {test_id}")
