"""Tests for anomaly detection."""

from datetime import datetime

import pytest

from ab_monitor.models import Anomaly, AnomalySeverity, AnomalyType, RiskLevel
from ab_monitor.monitoring.anomaly import (
    AnomalyDetector,
    aggregate_risk,
    estimate_recent_traffic,
)


def _anomaly(severity: AnomalySeverity) -> Anomaly:
    return Anomaly(
        type=AnomalyType.UNUSUAL_PATTERN,
        severity=severity,
        description="test",
        affected_variations=["control"],
        suggested_action="none",
    )


@pytest.fixture
def detector() -> AnomalyDetector:
    """Detector with default thresholds."""
    return AnomalyDetector()


class TestEstimateRecentTraffic:
    """Tests for estimate_recent_traffic."""

    def test_uses_tracked_recent_visitors(self, make_metrics, now: datetime) -> None:
        """Test tracked last-day traffic is used as-is."""
        metrics = make_metrics((1_000, 50), (1_000, 50), age_days=10, recent_visitors=640)
        assert estimate_recent_traffic(metrics, 1.0, now) == 640

    def test_even_spread(self, make_metrics, now: datetime) -> None:
        """Test traffic is spread over the test's lifetime."""
        metrics = make_metrics((10_000, 500), (10_000, 500), age_days=10)
        assert estimate_recent_traffic(metrics, 1.0, now) == pytest.approx(2_000)

    def test_young_test(self, make_metrics, now: datetime) -> None:
        """Test a test younger than the window reports all traffic."""
        metrics = make_metrics((300, 10), (300, 12), age_days=0.5)
        assert estimate_recent_traffic(metrics, 1.0, now) == 600


class TestAggregateRisk:
    """Tests for aggregate_risk."""

    def test_no_anomalies(self) -> None:
        """Test no anomalies is low risk."""
        assert aggregate_risk([]) == RiskLevel.LOW

    def test_one_warning(self) -> None:
        """Test a single warning is medium risk."""
        assert aggregate_risk([_anomaly(AnomalySeverity.WARNING)]) == RiskLevel.MEDIUM

    def test_two_warnings(self) -> None:
        """Test two warnings are still medium risk."""
        anomalies = [_anomaly(AnomalySeverity.WARNING)] * 2
        assert aggregate_risk(anomalies) == RiskLevel.MEDIUM

    def test_three_warnings(self) -> None:
        """Test more than two warnings are high risk."""
        anomalies = [_anomaly(AnomalySeverity.WARNING)] * 3
        assert aggregate_risk(anomalies) == RiskLevel.HIGH

    def test_any_critical(self) -> None:
        """Test one critical anomaly dominates."""
        anomalies = [_anomaly(AnomalySeverity.WARNING), _anomaly(AnomalySeverity.CRITICAL)]
        assert aggregate_risk(anomalies) == RiskLevel.CRITICAL


class TestTrafficSpike:
    """Tests for the traffic spike check."""

    def test_spike_detected(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test last-day traffic above 3x the daily average."""
        metrics = make_metrics((10_000, 500), (10_000, 520), age_days=10, recent_visitors=7_000)
        anomaly = detector.check_traffic_spike(metrics, now)

        assert anomaly is not None
        assert anomaly.type == AnomalyType.TRAFFIC_SPIKE
        assert anomaly.severity == AnomalySeverity.WARNING
        assert anomaly.affected_variations == ["control", "variant_1"]
        assert "7000 vs normal 2000" in anomaly.description

    def test_below_threshold(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test traffic at 2.5x the average is not a spike."""
        metrics = make_metrics((10_000, 500), (10_000, 520), age_days=10, recent_visitors=5_000)
        assert detector.check_traffic_spike(metrics, now) is None

    def test_even_spread_never_spikes(
        self, detector: AnomalyDetector, make_metrics, now: datetime
    ) -> None:
        """Test the lifetime estimate alone cannot exceed the average."""
        metrics = make_metrics((10_000, 500), (10_000, 520), age_days=10)
        assert detector.check_traffic_spike(metrics, now) is None

    def test_not_started(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test no traffic rate means no spike."""
        metrics = make_metrics((10, 1), (10, 1), age_days=0, recent_visitors=20)
        assert detector.check_traffic_spike(metrics, now) is None


class TestConversionDrop:
    """Tests for the conversion drop check."""

    def test_drop_detected(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test 4% against a 10% baseline is critical."""
        metrics = make_metrics((10_000, 400), (10_000, 420))
        anomalies = detector.check_conversion_drops(metrics, {"control": 0.10}, now)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.CONVERSION_DROP
        assert anomalies[0].severity == AnomalySeverity.CRITICAL
        assert anomalies[0].affected_variations == ["control"]
        assert anomalies[0].description == (
            "Conversion rate drop in Control: 4.00% vs historical 10.00%"
        )

    def test_small_drop_ignored(
        self, detector: AnomalyDetector, make_metrics, now: datetime
    ) -> None:
        """Test a rate above half the baseline is fine."""
        metrics = make_metrics((10_000, 400), (10_000, 420))
        assert detector.check_conversion_drops(metrics, {"control": 0.07}, now) == []

    def test_missing_baseline_skipped(
        self, detector: AnomalyDetector, make_metrics, now: datetime
    ) -> None:
        """Test variations without baselines are skipped."""
        metrics = make_metrics((10_000, 10), (10_000, 10))
        baselines = {"control": None, "other": 0.5}
        assert detector.check_conversion_drops(metrics, baselines, now) == []


class TestUnusualPattern:
    """Tests for the conversion variance check."""

    def test_high_variance(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test 5% vs 30% conversion is unusual."""
        metrics = make_metrics((1_000, 50), (1_000, 300))
        anomaly = detector.check_unusual_pattern(metrics, now)

        assert anomaly is not None
        assert anomaly.type == AnomalyType.UNUSUAL_PATTERN
        assert anomaly.severity == AnomalySeverity.WARNING
        assert "0.0156" in anomaly.description

    def test_normal_variance(
        self, detector: AnomalyDetector, make_metrics, now: datetime
    ) -> None:
        """Test close rates are normal."""
        metrics = make_metrics((1_000, 50), (1_000, 60))
        assert detector.check_unusual_pattern(metrics, now) is None


class TestDetect:
    """Tests for the combined detection."""

    def test_clean_test(self, detector: AnomalyDetector, flat_metrics, now: datetime) -> None:
        """Test a healthy test is low risk."""
        detection = detector.detect(flat_metrics, {"control": 0.05}, now)

        assert detection.anomalies == []
        assert detection.risk_level == RiskLevel.LOW
        assert detection.last_check == now

    def test_two_warnings(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test spike plus unusual pattern is medium risk."""
        metrics = make_metrics((1_000, 50), (1_000, 300), age_days=10, recent_visitors=1_500)
        detection = detector.detect(metrics, None, now)

        assert [a.type for a in detection.anomalies] == [
            AnomalyType.TRAFFIC_SPIKE,
            AnomalyType.UNUSUAL_PATTERN,
        ]
        assert detection.risk_level == RiskLevel.MEDIUM

    def test_critical_drop(self, detector: AnomalyDetector, make_metrics, now: datetime) -> None:
        """Test a conversion drop makes the test critical."""
        metrics = make_metrics((10_000, 400), (10_000, 420))
        detection = detector.detect(metrics, {"control": 0.10}, now)

        assert detection.risk_level == RiskLevel.CRITICAL

    def test_custom_thresholds(self, make_metrics, now: datetime) -> None:
        """Test thresholds can be tuned."""
        detector = AnomalyDetector(variance_threshold=0.00001)
        metrics = make_metrics((1_000, 50), (1_000, 60))
        assert detector.detect(metrics, None, now).risk_level == RiskLevel.MEDIUM
