"""Data model for experiment monitoring.

Metrics snapshots arrive already aggregated from the host's metrics store.
Everything produced by an analysis tick (results, anomaly reports, alerts)
is an immutable record with a ``to_dict()`` for serialization.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class AnalysisMethod(Enum):
    """Statistical method that produced a result."""

    FREQUENTIST = "frequentist"
    BAYESIAN = "bayesian"


class RecommendedAction(Enum):
    """Action recommended for a running test.

    ``STOP`` and ``PAUSE`` are terminal; ``CONTINUE`` and ``EXTEND`` keep the
    test active.
    """

    CONTINUE = "continue"
    STOP = "stop"
    PAUSE = "pause"
    EXTEND = "extend"

    @property
    def is_terminal(self) -> bool:
        """Whether the action ends the test."""
        return self in (RecommendedAction.STOP, RecommendedAction.PAUSE)


class AnomalyType(Enum):
    """Kind of anomaly found in a test's traffic or conversions."""

    TRAFFIC_SPIKE = "traffic_spike"
    CONVERSION_DROP = "conversion_drop"
    UNUSUAL_PATTERN = "unusual_pattern"


class AnomalySeverity(Enum):
    """Severity of a single anomaly."""

    WARNING = "warning"
    CRITICAL = "critical"


class RiskLevel(Enum):
    """Aggregated anomaly risk of a test."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def score(self) -> int:
        """Numeric rank (0=low .. 3=critical)."""
        return list(RiskLevel).index(self)


class AlertType(Enum):
    """Types of monitoring alerts."""

    EARLY_WINNER = "early_winner"
    POWER_INSUFFICIENT = "power_insufficient"
    ANOMALY = "anomaly"
    SAMPLE_SIZE_REACHED = "sample_size_reached"


class AlertSeverity(Enum):
    """Alert severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class VariationMetrics:
    """Aggregated counts for one variation (arm) of a test."""

    variation_id: str
    name: str
    visitors: int
    conversions: int
    revenue: float | None = None
    avg_order_value: float | None = None

    def __post_init__(self) -> None:
        """Validate counts."""
        if self.visitors < 0:
            raise ValueError(f"visitors must be >= 0, got {self.visitors}")
        if not 0 <= self.conversions <= self.visitors:
            raise ValueError(
                f"conversions must be between 0 and visitors ({self.visitors}), "
                f"got {self.conversions}"
            )

    @property
    def conversion_rate(self) -> float:
        """Calculate conversion rate."""
        if self.visitors == 0:
            return 0.0
        return self.conversions / self.visitors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "variation_id": self.variation_id,
            "name": self.name,
            "visitors": self.visitors,
            "conversions": self.conversions,
            "conversion_rate": self.conversion_rate,
            "revenue": self.revenue,
            "avg_order_value": self.avg_order_value,
        }


@dataclass(frozen=True)
class TestMetrics:
    """Snapshot of a test's metrics.

    Variation 0 is the control. Totals default to the sums over variations.
    ``recent_visitors`` is the traffic seen in the last 24 hours when the
    metrics store tracks it.

    Example:
        >>> metrics = TestMetrics(
        ...     test_id="checkout-cta",
        ...     variations=[
        ...         VariationMetrics("control", "Control", 5000, 250),
        ...         VariationMetrics("green", "Green button", 5000, 400),
        ...     ],
        ...     start_time=datetime.now(UTC) - timedelta(days=3),
        ... )
    """

    __test__ = False  # not a pytest test class

    test_id: str
    variations: list[VariationMetrics]
    start_time: datetime
    total_visitors: int | None = None
    total_conversions: int | None = None
    last_updated: datetime = field(default_factory=_utcnow)
    recent_visitors: int | None = None

    def __post_init__(self) -> None:
        """Fill in totals from the variations when not supplied."""
        if self.total_visitors is None:
            object.__setattr__(
                self, "total_visitors", sum(v.visitors for v in self.variations)
            )
        if self.total_conversions is None:
            object.__setattr__(
                self, "total_conversions", sum(v.conversions for v in self.variations)
            )

    @property
    def control(self) -> VariationMetrics | None:
        """The control variation, if any."""
        return self.variations[0] if self.variations else None

    @property
    def overall_conversion_rate(self) -> float:
        """Conversion rate across all variations."""
        if not self.total_visitors:
            return 0.0
        return self.total_conversions / self.total_visitors

    def age_days(self, now: datetime | None = None) -> float:
        """Elapsed days since the test started.

        Args:
            now: Reference time (defaults to current UTC time).

        Returns:
            Test age in days.
        """
        now = now or _utcnow()
        return (now - self.start_time).total_seconds() / 86400

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "test_id": self.test_id,
            "variations": [v.to_dict() for v in self.variations],
            "start_time": self.start_time.isoformat(),
            "total_visitors": self.total_visitors,
            "total_conversions": self.total_conversions,
            "overall_conversion_rate": self.overall_conversion_rate,
            "last_updated": self.last_updated.isoformat(),
            "recent_visitors": self.recent_visitors,
        }


@dataclass(frozen=True)
class PowerAnalysis:
    """Power and sample-size picture of a test."""

    current_power: float
    required_sample_size: int
    actual_sample_size: int
    probability_of_success: float
    estimated_time_to_significance: float | None = None  # hours

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "current_power": self.current_power,
            "required_sample_size": self.required_sample_size,
            "actual_sample_size": self.actual_sample_size,
            "estimated_time_to_significance": self.estimated_time_to_significance,
            "probability_of_success": self.probability_of_success,
        }


@dataclass(frozen=True)
class StatisticalResult:
    """Outcome of one statistical method for one tick."""

    test_id: str
    method: AnalysisMethod
    is_significant: bool
    power_analysis: PowerAnalysis
    recommended_action: RecommendedAction
    reasoning: str
    p_value: float | None = None
    confidence_interval: tuple[float, float] | None = None
    bayesian_probability: float | None = None
    credible_interval: tuple[float, float] | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "test_id": self.test_id,
            "method": self.method.value,
            "is_significant": self.is_significant,
            "p_value": self.p_value,
            "confidence_interval": list(self.confidence_interval)
            if self.confidence_interval
            else None,
            "bayesian_probability": self.bayesian_probability,
            "credible_interval": list(self.credible_interval)
            if self.credible_interval
            else None,
            "power_analysis": self.power_analysis.to_dict(),
            "recommended_action": self.recommended_action.value,
            "reasoning": self.reasoning,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Anomaly:
    """A single anomaly found during a tick."""

    type: AnomalyType
    severity: AnomalySeverity
    description: str
    affected_variations: list[str]
    suggested_action: str
    detected_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "detected_at": self.detected_at.isoformat(),
            "affected_variations": list(self.affected_variations),
            "suggested_action": self.suggested_action,
        }


@dataclass(frozen=True)
class AnomalyDetection:
    """All anomalies of one tick plus the aggregated risk level."""

    test_id: str
    anomalies: list[Anomaly]
    risk_level: RiskLevel
    last_check: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "test_id": self.test_id,
            "anomalies": [a.to_dict() for a in self.anomalies],
            "risk_level": self.risk_level.value,
            "last_check": self.last_check.isoformat(),
        }


@dataclass(frozen=True)
class MonitoringAlert:
    """Alert raised by the decision engine for the notification layer."""

    test_id: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    action_required: bool
    auto_action_taken: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "test_id": self.test_id,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "action_required": self.action_required,
            "auto_action_taken": self.auto_action_taken,
        }
