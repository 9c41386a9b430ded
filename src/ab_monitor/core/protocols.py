"""Protocol definitions for ab-monitor.

These protocols describe the external collaborators the engine talks to,
so hosts can plug in their own metrics stores and notification layers.
"""

from typing import Any, Protocol


class BaselineProviderProtocol(Protocol):
    """Source of historical conversion-rate baselines.

    Used by the conversion-drop anomaly check. Returning ``None`` means no
    baseline is known and the check is skipped for that variation.
    """

    async def get_baseline_rate(self, variation_id: str) -> float | None:
        """Get the historical conversion rate of a variation.

        Args:
            variation_id: Identifier of the variation.

        Returns:
            Baseline conversion rate in [0, 1], or None if unknown.
        """
        ...


class MetricsCollectorProtocol(Protocol):
    """Protocol for metrics collection.

    Defines the interface the monitor uses to record per-tick metrics.
    """

    def record_analysis(self, outcome: str, duration_seconds: float) -> None:
        """Record one analysis tick.

        Args:
            outcome: "success", "insufficient_data" or "error".
            duration_seconds: Wall time of the tick.
        """
        ...

    def record_alert(self, alert_type: str, severity: str) -> None:
        """Record a raised alert.

        Args:
            alert_type: Alert type value.
            severity: Alert severity value.
        """
        ...

    def update_test_state(self, test_id: str, report: Any) -> None:
        """Update per-test gauges from an analysis report.

        Args:
            test_id: Test identifier.
            report: The tick's analysis report.
        """
        ...

    def set_active_tests(self, count: int) -> None:
        """Update the number of actively monitored tests.

        Args:
            count: Number of active tests.
        """
        ...

    def forget_test(self, test_id: str) -> None:
        """Drop per-test series once a test stops being monitored.

        Args:
            test_id: Test identifier.
        """
        ...
