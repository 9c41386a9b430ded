"""Frequentist analysis - pooled two-proportion z-test.

Compares the control (variation 0) with the primary treatment (variation 1).
"""

import logging
import math
from dataclasses import dataclass

from ab_monitor.core.exceptions import InsufficientDataError
from ab_monitor.models import TestMetrics, VariationMetrics
from ab_monitor.statistics.primitives import normal_cdf, z_critical

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZTestResult:
    """Result of the two-proportion z-test."""

    control_rate: float
    treatment_rate: float
    z_score: float
    p_value: float
    standard_error: float
    confidence_interval: tuple[float, float]
    is_significant: bool

    @property
    def effect(self) -> float:
        """Absolute rate difference (treatment - control)."""
        return self.treatment_rate - self.control_rate


def select_arms(metrics: TestMetrics) -> tuple[VariationMetrics, VariationMetrics]:
    """Pick the control and primary treatment of a test.

    Args:
        metrics: Test metrics snapshot.

    Returns:
        Tuple of (control, treatment).

    Raises:
        InsufficientDataError: If fewer than two variations are present or
            either compared arm has no visitors.
    """
    if len(metrics.variations) < 2:
        raise InsufficientDataError(
            f"At least 2 variations required for statistical analysis "
            f"(test {metrics.test_id} has {len(metrics.variations)})"
        )

    control, treatment = metrics.variations[0], metrics.variations[1]
    for arm in (control, treatment):
        if arm.visitors == 0:
            raise InsufficientDataError(
                f"Variation {arm.variation_id} of test {metrics.test_id} has no visitors"
            )
    return control, treatment


def pooled_proportion(control: VariationMetrics, treatment: VariationMetrics) -> float:
    """Conversion rate of both arms combined."""
    total_visitors = control.visitors + treatment.visitors
    if total_visitors == 0:
        return 0.0
    return (control.conversions + treatment.conversions) / total_visitors


def two_proportion_z_test(metrics: TestMetrics, alpha: float = 0.05) -> ZTestResult:
    """Run a pooled two-proportion z-test on the first two variations.

    The confidence interval for the rate difference is
    ``effect +/- z_critical(alpha / 2) * SE`` using the pooled standard error.

    Args:
        metrics: Test metrics snapshot.
        alpha: Significance level.

    Returns:
        ZTestResult.

    Raises:
        InsufficientDataError: If the test cannot be compared yet.
    """
    control, treatment = select_arms(metrics)

    p1 = control.conversion_rate
    p2 = treatment.conversion_rate
    pooled = pooled_proportion(control, treatment)

    se = math.sqrt(pooled * (1 - pooled) * (1 / control.visitors + 1 / treatment.visitors))
    effect = p2 - p1

    if se == 0:
        # All-or-nothing conversions: no variance to test against
        logger.debug(f"Zero standard error for test {metrics.test_id}, reporting p=1.0")
        return ZTestResult(
            control_rate=p1,
            treatment_rate=p2,
            z_score=0.0,
            p_value=1.0,
            standard_error=0.0,
            confidence_interval=(effect, effect),
            is_significant=False,
        )

    z = effect / se
    p_value = 2 * (1 - normal_cdf(abs(z)))

    margin = z_critical(alpha / 2) * se

    return ZTestResult(
        control_rate=p1,
        treatment_rate=p2,
        z_score=z,
        p_value=p_value,
        standard_error=se,
        confidence_interval=(effect - margin, effect + margin),
        is_significant=p_value < alpha,
    )
