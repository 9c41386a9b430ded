"""Power analysis - achieved power, sample size and time to significance.

Everything here uses the same pooled-proportion framework as the z-test and
the coarse ``z_critical`` table. ``probability_of_success`` is a heuristic
blend of achieved power and the observed effect relative to the minimum
detectable effect; it is not a formal estimator.
"""

import math
from datetime import datetime

from ab_monitor.models import PowerAnalysis, TestMetrics
from ab_monitor.statistics.config import StatisticalConfig
from ab_monitor.statistics.frequentist import pooled_proportion, select_arms
from ab_monitor.statistics.primitives import clamp, normal_cdf, z_critical

# Weight of the effect-size ratio in the success heuristic
_EFFECT_RATIO_WEIGHT = 0.3


def estimate_daily_traffic(metrics: TestMetrics, now: datetime | None = None) -> float:
    """Average visitors per day over the test's lifetime.

    Args:
        metrics: Test metrics snapshot.
        now: Reference time.

    Returns:
        Visitors per day, 0.0 if the test has not started yet.
    """
    days = metrics.age_days(now)
    if days <= 0:
        return 0.0
    return metrics.total_visitors / days


def required_sample_size(pooled_rate: float, config: StatisticalConfig) -> int:
    """Visitors per arm needed to reach the target power.

    Args:
        pooled_rate: Pooled conversion rate of the compared arms.
        config: Statistical configuration.

    Returns:
        Required sample size per arm.
    """
    z_alpha = z_critical(config.significance_level / 2)
    z_beta = z_critical(1 - config.power_level)
    n = (
        2
        * (z_alpha + z_beta) ** 2
        * pooled_rate
        * (1 - pooled_rate)
        / config.minimum_detectable_effect**2
    )
    return math.ceil(n)


def analyze_power(
    metrics: TestMetrics,
    config: StatisticalConfig,
    now: datetime | None = None,
) -> PowerAnalysis:
    """Compute the power picture of a test.

    Args:
        metrics: Test metrics snapshot.
        config: Statistical configuration.
        now: Reference time for traffic extrapolation.

    Returns:
        PowerAnalysis.

    Raises:
        InsufficientDataError: If the test cannot be compared yet.
    """
    control, treatment = select_arms(metrics)

    effect = abs(treatment.conversion_rate - control.conversion_rate)
    pooled = pooled_proportion(control, treatment)

    se = math.sqrt(2 * pooled * (1 - pooled) / control.visitors)
    if se == 0:
        current_power = 1.0 if effect > 0 else 0.0
    else:
        z_beta = (effect - z_critical(config.significance_level / 2) * se) / se
        current_power = clamp(normal_cdf(z_beta))

    required = required_sample_size(pooled, config)

    daily_traffic = estimate_daily_traffic(metrics, now)
    remaining = max(0, required - control.visitors)
    hours: float | None = None
    if daily_traffic > 0 and remaining > 0:
        hours = remaining / daily_traffic * 24

    probability_of_success = clamp(
        current_power + (effect / config.minimum_detectable_effect) * _EFFECT_RATIO_WEIGHT
    )

    return PowerAnalysis(
        current_power=current_power,
        required_sample_size=required,
        actual_sample_size=control.visitors,
        estimated_time_to_significance=hours,
        probability_of_success=probability_of_success,
    )
