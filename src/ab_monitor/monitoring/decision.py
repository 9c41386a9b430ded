"""Decision Engine - turn one tick's analyses into an action and alerts.

Pure computation: given a metrics snapshot, historical baselines and a
configuration, ``DecisionEngine.evaluate`` runs the frequentist, Bayesian,
power and anomaly analyses and combines them.

Overall action, first matching rule wins:
1. Anomaly risk is critical -> PAUSE
2. Frequentist and Bayesian both significant -> STOP
3. Power < 0.5 and probability of success < 0.3 -> EXTEND
4. Anomaly risk is high -> PAUSE
5. Otherwise -> CONTINUE
"""

import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ab_monitor.models import (
    AlertSeverity,
    AlertType,
    AnalysisMethod,
    AnomalyDetection,
    MonitoringAlert,
    PowerAnalysis,
    RecommendedAction,
    RiskLevel,
    StatisticalResult,
    TestMetrics,
)
from ab_monitor.monitoring.anomaly import AnomalyDetector
from ab_monitor.statistics.bayesian import BayesianOutcome, beta_binomial_analysis
from ab_monitor.statistics.config import StatisticalConfig
from ab_monitor.statistics.frequentist import ZTestResult, two_proportion_z_test
from ab_monitor.statistics.power import analyze_power

EXTEND_POWER_THRESHOLD = 0.5
EXTEND_SUCCESS_THRESHOLD = 0.3
LOW_POWER_ALERT_THRESHOLD = 0.2


@dataclass(frozen=True)
class AnalysisReport:
    """Everything one analysis tick produced for a test."""

    test_id: str
    frequentist: StatisticalResult
    bayesian: StatisticalResult | None
    power_analysis: PowerAnalysis
    anomalies: AnomalyDetection
    recommended_action: RecommendedAction
    alerts: list[MonitoringAlert] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def results(self) -> list[StatisticalResult]:
        """Statistical results in storage order (frequentist first)."""
        if self.bayesian is None:
            return [self.frequentist]
        return [self.frequentist, self.bayesian]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "test_id": self.test_id,
            "frequentist": self.frequentist.to_dict(),
            "bayesian": self.bayesian.to_dict() if self.bayesian else None,
            "power_analysis": self.power_analysis.to_dict(),
            "anomalies": self.anomalies.to_dict(),
            "recommended_action": self.recommended_action.value,
            "alerts": [a.to_dict() for a in self.alerts],
            "timestamp": self.timestamp.isoformat(),
        }


class DecisionEngine:
    """Combine statistical analyses into a recommended action.

    Example:
        >>> engine = DecisionEngine(StatisticalConfig())
        >>> report = engine.evaluate(metrics, baselines={"control": 0.05})
        >>> report.recommended_action
        <RecommendedAction.CONTINUE: 'continue'>
    """

    def __init__(
        self,
        config: StatisticalConfig,
        anomaly_detector: AnomalyDetector | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Statistical configuration used for every evaluation.
            anomaly_detector: Detector to use (defaults to standard thresholds).
            rng: Optional random generator for the Monte Carlo step.
        """
        self.config = config
        self.anomaly_detector = anomaly_detector or AnomalyDetector()
        self._rng = rng

    def evaluate(
        self,
        metrics: TestMetrics,
        baselines: Mapping[str, float | None] | None = None,
        now: datetime | None = None,
    ) -> AnalysisReport:
        """Run every analysis on a snapshot and decide.

        Args:
            metrics: Test metrics snapshot.
            baselines: Historical conversion rate per variation id.
            now: Reference time (defaults to current UTC time).

        Returns:
            AnalysisReport.

        Raises:
            InsufficientDataError: If fewer than two comparable variations exist.
        """
        now = now or datetime.now(UTC)

        power = analyze_power(metrics, self.config, now)
        z_test = two_proportion_z_test(metrics, self.config.significance_level)
        frequentist = self.frequentist_result(metrics, z_test, power, now)

        bayesian = None
        if self.config.bayesian_enabled:
            outcome = beta_binomial_analysis(
                metrics, self.config.monte_carlo_simulations, self._rng
            )
            bayesian = self.bayesian_result(metrics, outcome, power, now)

        anomalies = self.anomaly_detector.detect(metrics, baselines, now)
        action = self.determine_action(frequentist, bayesian, power, anomalies)
        alerts = self.build_alerts(metrics, frequentist, power, anomalies, now)

        return AnalysisReport(
            test_id=metrics.test_id,
            frequentist=frequentist,
            bayesian=bayesian,
            power_analysis=power,
            anomalies=anomalies,
            recommended_action=action,
            alerts=alerts,
            timestamp=now,
        )

    def frequentist_result(
        self,
        metrics: TestMetrics,
        z_test: ZTestResult,
        power: PowerAnalysis,
        now: datetime,
    ) -> StatisticalResult:
        """Wrap a z-test into a StatisticalResult."""
        alpha = self.config.significance_level
        if z_test.is_significant:
            reasoning = (
                f"Frequentist analysis shows significant difference "
                f"(p={z_test.p_value:.4f} < {alpha})"
            )
        else:
            reasoning = f"No significant difference found (p={z_test.p_value:.4f} >= {alpha})"

        return StatisticalResult(
            test_id=metrics.test_id,
            method=AnalysisMethod.FREQUENTIST,
            is_significant=z_test.is_significant,
            p_value=z_test.p_value,
            confidence_interval=z_test.confidence_interval,
            power_analysis=power,
            recommended_action=self.method_recommendation(z_test.is_significant, metrics, now),
            reasoning=reasoning,
            timestamp=now,
        )

    def bayesian_result(
        self,
        metrics: TestMetrics,
        outcome: BayesianOutcome,
        power: PowerAnalysis,
        now: datetime,
    ) -> StatisticalResult:
        """Wrap a Beta-Binomial outcome into a StatisticalResult."""
        probability = outcome.probability_treatment_better
        strength = "strong" if outcome.is_significant else "inconclusive"
        reasoning = (
            f"Bayesian analysis shows {strength} evidence ({probability * 100:.1f}% probability)"
        )

        return StatisticalResult(
            test_id=metrics.test_id,
            method=AnalysisMethod.BAYESIAN,
            is_significant=outcome.is_significant,
            bayesian_probability=probability,
            credible_interval=outcome.credible_interval,
            power_analysis=power,
            recommended_action=self.method_recommendation(outcome.is_significant, metrics, now),
            reasoning=reasoning,
            timestamp=now,
        )

    def method_recommendation(
        self, is_significant: bool, metrics: TestMetrics, now: datetime
    ) -> RecommendedAction:
        """Recommendation carried by a single method's result.

        Significant results and tests older than the maximum duration stop.
        Tests below the minimum sample size keep collecting data, as does
        every other test.
        """
        if is_significant:
            return RecommendedAction.STOP
        if metrics.age_days(now) > self.config.max_test_duration_days:
            return RecommendedAction.STOP
        if metrics.total_visitors < self.config.minimum_sample_size:
            return RecommendedAction.CONTINUE
        return RecommendedAction.CONTINUE

    def determine_action(
        self,
        frequentist: StatisticalResult,
        bayesian: StatisticalResult | None,
        power: PowerAnalysis,
        anomalies: AnomalyDetection,
    ) -> RecommendedAction:
        """Apply the prioritized rules to one tick's analyses."""
        if anomalies.risk_level == RiskLevel.CRITICAL:
            return RecommendedAction.PAUSE

        if bayesian is not None and frequentist.is_significant and bayesian.is_significant:
            return RecommendedAction.STOP

        if (
            power.current_power < EXTEND_POWER_THRESHOLD
            and power.probability_of_success < EXTEND_SUCCESS_THRESHOLD
        ):
            return RecommendedAction.EXTEND

        if anomalies.risk_level == RiskLevel.HIGH:
            return RecommendedAction.PAUSE

        return RecommendedAction.CONTINUE

    def build_alerts(
        self,
        metrics: TestMetrics,
        frequentist: StatisticalResult,
        power: PowerAnalysis,
        anomalies: AnomalyDetection,
        now: datetime,
    ) -> list[MonitoringAlert]:
        """Collect the alerts one tick raises (zero or more, not exclusive)."""
        alerts: list[MonitoringAlert] = []
        test_id = metrics.test_id

        if self.config.early_stopping_enabled and frequentist.is_significant:
            alerts.append(
                MonitoringAlert(
                    test_id=test_id,
                    alert_type=AlertType.EARLY_WINNER,
                    severity=AlertSeverity.INFO,
                    message=f"Early winner detected with p-value: {frequentist.p_value:.4f}",
                    action_required=True,
                    auto_action_taken="Test recommended for termination",
                    timestamp=now,
                )
            )

        if power.current_power < LOW_POWER_ALERT_THRESHOLD:
            alerts.append(
                MonitoringAlert(
                    test_id=test_id,
                    alert_type=AlertType.POWER_INSUFFICIENT,
                    severity=AlertSeverity.WARNING,
                    message=f"Low statistical power: {power.current_power * 100:.1f}%",
                    action_required=True,
                    timestamp=now,
                )
            )

        if anomalies.anomalies:
            critical = anomalies.risk_level == RiskLevel.CRITICAL
            alerts.append(
                MonitoringAlert(
                    test_id=test_id,
                    alert_type=AlertType.ANOMALY,
                    severity=AlertSeverity.CRITICAL if critical else AlertSeverity.WARNING,
                    message=(
                        f"{len(anomalies.anomalies)} anomal(ies) detected with "
                        f"{anomalies.risk_level.value} risk level"
                    ),
                    action_required=critical,
                    auto_action_taken="Test automatically paused" if critical else None,
                    timestamp=now,
                )
            )

        if metrics.total_visitors >= power.required_sample_size:
            alerts.append(
                MonitoringAlert(
                    test_id=test_id,
                    alert_type=AlertType.SAMPLE_SIZE_REACHED,
                    severity=AlertSeverity.INFO,
                    message=(
                        f"Required sample size reached: "
                        f"{metrics.total_visitors}/{power.required_sample_size}"
                    ),
                    action_required=False,
                    timestamp=now,
                )
            )

        return alerts
