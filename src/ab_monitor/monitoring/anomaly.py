"""Anomaly Detection - traffic and conversion anomalies in running tests.

Three independent checks run on every tick:
- Traffic spike: last-day traffic far above the lifetime daily average
- Conversion drop: a variation converting far below its historical baseline
- Unusual pattern: conversion rates that disagree too much across variations
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime

from ab_monitor.models import (
    Anomaly,
    AnomalyDetection,
    AnomalySeverity,
    AnomalyType,
    RiskLevel,
    TestMetrics,
)
from ab_monitor.statistics.power import estimate_daily_traffic
from ab_monitor.statistics.primitives import variance

logger = logging.getLogger(__name__)


def estimate_recent_traffic(
    metrics: TestMetrics, days: float = 1.0, now: datetime | None = None
) -> float:
    """Visitors seen in the last ``days`` days.

    Uses ``metrics.recent_visitors`` when the metrics store tracks it (only
    for the one-day window); otherwise assumes traffic was spread evenly over
    the test's lifetime.

    Args:
        metrics: Test metrics snapshot.
        days: Window length in days.
        now: Reference time.

    Returns:
        Estimated visitors in the window.
    """
    if metrics.recent_visitors is not None and days == 1.0:
        return float(metrics.recent_visitors)

    total_days = metrics.age_days(now)
    if total_days <= days:
        return float(metrics.total_visitors)
    return metrics.total_visitors * (days / total_days)


def aggregate_risk(anomalies: list[Anomaly]) -> RiskLevel:
    """Fold individual anomalies into one risk level.

    Any critical anomaly makes the test critical; more than two warnings make
    it high; one or two warnings make it medium.
    """
    critical_count = sum(1 for a in anomalies if a.severity == AnomalySeverity.CRITICAL)
    warning_count = sum(1 for a in anomalies if a.severity == AnomalySeverity.WARNING)

    if critical_count > 0:
        return RiskLevel.CRITICAL
    if warning_count > 2:
        return RiskLevel.HIGH
    if warning_count > 0:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class AnomalyDetector:
    """Detect anomalies in an active test.

    Example:
        >>> detector = AnomalyDetector()
        >>> detection = detector.detect(metrics, baselines={"control": 0.10})
        >>> if detection.risk_level == RiskLevel.CRITICAL:
        ...     print("pause the test")
    """

    def __init__(
        self,
        spike_multiplier: float = 3.0,
        drop_ratio: float = 0.5,
        variance_threshold: float = 0.01,
    ) -> None:
        """Initialize the detector.

        Args:
            spike_multiplier: Recent/average traffic ratio that counts as a spike.
            drop_ratio: Fraction of the baseline rate below which a drop fires.
            variance_threshold: Variance of conversion rates that counts as unusual.
        """
        self.spike_multiplier = spike_multiplier
        self.drop_ratio = drop_ratio
        self.variance_threshold = variance_threshold

    def detect(
        self,
        metrics: TestMetrics,
        baselines: Mapping[str, float | None] | None = None,
        now: datetime | None = None,
    ) -> AnomalyDetection:
        """Run all checks against a metrics snapshot.

        Args:
            metrics: Test metrics snapshot.
            baselines: Historical conversion rate per variation id.
            now: Reference time.

        Returns:
            AnomalyDetection with the anomalies found and the risk level.
        """
        now = now or datetime.now(UTC)
        anomalies: list[Anomaly] = []

        spike = self.check_traffic_spike(metrics, now)
        if spike:
            anomalies.append(spike)

        anomalies.extend(self.check_conversion_drops(metrics, baselines or {}, now))

        pattern = self.check_unusual_pattern(metrics, now)
        if pattern:
            anomalies.append(pattern)

        return AnomalyDetection(
            test_id=metrics.test_id,
            anomalies=anomalies,
            risk_level=aggregate_risk(anomalies),
            last_check=now,
        )

    def check_traffic_spike(self, metrics: TestMetrics, now: datetime) -> Anomaly | None:
        """Check last-day traffic against the lifetime daily average."""
        avg_daily = estimate_daily_traffic(metrics, now)
        if avg_daily <= 0:
            return None
        recent = estimate_recent_traffic(metrics, 1.0, now)

        if recent <= avg_daily * self.spike_multiplier:
            return None

        return Anomaly(
            type=AnomalyType.TRAFFIC_SPIKE,
            severity=AnomalySeverity.WARNING,
            description=f"Traffic spike detected: {recent:.0f} vs normal {avg_daily:.0f}",
            affected_variations=[v.variation_id for v in metrics.variations],
            suggested_action="Monitor closely for external factors affecting traffic",
            detected_at=now,
        )

    def check_conversion_drops(
        self,
        metrics: TestMetrics,
        baselines: Mapping[str, float | None],
        now: datetime,
    ) -> list[Anomaly]:
        """Check every variation against its historical baseline."""
        anomalies = []
        for variation in metrics.variations:
            baseline = baselines.get(variation.variation_id)
            if not baseline:
                logger.debug(f"No baseline for variation {variation.variation_id}, skipping")
                continue

            if variation.conversion_rate < baseline * self.drop_ratio:
                anomalies.append(
                    Anomaly(
                        type=AnomalyType.CONVERSION_DROP,
                        severity=AnomalySeverity.CRITICAL,
                        description=(
                            f"Conversion rate drop in {variation.name}: "
                            f"{variation.conversion_rate * 100:.2f}% vs historical "
                            f"{baseline * 100:.2f}%"
                        ),
                        affected_variations=[variation.variation_id],
                        suggested_action=(
                            "Investigate variation implementation and user experience"
                        ),
                        detected_at=now,
                    )
                )
        return anomalies

    def check_unusual_pattern(self, metrics: TestMetrics, now: datetime) -> Anomaly | None:
        """Check the spread of conversion rates across variations."""
        rates = [v.conversion_rate for v in metrics.variations]
        spread = variance(rates)

        if spread <= self.variance_threshold:
            return None

        return Anomaly(
            type=AnomalyType.UNUSUAL_PATTERN,
            severity=AnomalySeverity.WARNING,
            description=f"High variance detected in conversion rates: {spread:.4f}",
            affected_variations=[v.variation_id for v in metrics.variations],
            suggested_action="Review test setup and traffic allocation",
            detected_at=now,
        )
