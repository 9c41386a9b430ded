"""Bayesian analysis - Beta-Binomial posteriors with Monte Carlo comparison.

Each arm gets an uninformative Beta(1, 1) prior, so the posterior of an arm
with ``n`` visitors and ``k`` conversions is Beta(1 + k, 1 + n - k).

The probability that the treatment beats the control is estimated from
posterior draws and is therefore noisy between calls. The credible interval
for the rate difference comes from the closed-form Beta moments (normal
approximation) and is deterministic.
"""

import math
import random
from dataclasses import dataclass

from ab_monitor.models import TestMetrics, VariationMetrics
from ab_monitor.statistics.frequentist import select_arms
from ab_monitor.statistics.primitives import beta_mean, beta_random, beta_variance

PRIOR_ALPHA = 1.0
PRIOR_BETA = 1.0

# Two-sided decision rule on P(treatment > control)
UPPER_DECISION_THRESHOLD = 0.95
LOWER_DECISION_THRESHOLD = 0.05

_CREDIBLE_Z = 1.96


@dataclass(frozen=True)
class BetaPosterior:
    """Beta posterior of one arm's conversion rate."""

    alpha: float
    beta: float

    @classmethod
    def from_variation(cls, variation: VariationMetrics) -> "BetaPosterior":
        """Build the posterior from observed counts."""
        return cls(
            alpha=PRIOR_ALPHA + variation.conversions,
            beta=PRIOR_BETA + variation.visitors - variation.conversions,
        )

    @property
    def mean(self) -> float:
        """Posterior mean."""
        return beta_mean(self.alpha, self.beta)

    @property
    def variance(self) -> float:
        """Posterior variance."""
        return beta_variance(self.alpha, self.beta)

    def sample(self, rng: random.Random | None = None) -> float:
        """Draw one rate from the posterior."""
        return beta_random(self.alpha, self.beta, rng)


@dataclass(frozen=True)
class BayesianOutcome:
    """Result of the Bayesian comparison."""

    control_posterior: BetaPosterior
    treatment_posterior: BetaPosterior
    probability_treatment_better: float
    credible_interval: tuple[float, float]
    simulations: int

    @property
    def is_significant(self) -> bool:
        """Whether the evidence is decisive in either direction."""
        return (
            self.probability_treatment_better > UPPER_DECISION_THRESHOLD
            or self.probability_treatment_better < LOWER_DECISION_THRESHOLD
        )


def probability_treatment_better(
    control: BetaPosterior,
    treatment: BetaPosterior,
    simulations: int = 10_000,
    rng: random.Random | None = None,
) -> float:
    """Estimate P(treatment rate > control rate) by Monte Carlo.

    Args:
        control: Control posterior.
        treatment: Treatment posterior.
        simulations: Number of paired draws.
        rng: Optional random generator.

    Returns:
        Fraction of draws where the treatment sample exceeds the control.
    """
    wins = 0
    for _ in range(simulations):
        if treatment.sample(rng) > control.sample(rng):
            wins += 1
    return wins / simulations


def credible_interval(
    control: BetaPosterior, treatment: BetaPosterior
) -> tuple[float, float]:
    """95% credible interval for the rate difference (treatment - control).

    Args:
        control: Control posterior.
        treatment: Treatment posterior.

    Returns:
        Tuple of (lower, upper).
    """
    diff_mean = treatment.mean - control.mean
    diff_std = math.sqrt(treatment.variance + control.variance)
    return diff_mean - _CREDIBLE_Z * diff_std, diff_mean + _CREDIBLE_Z * diff_std


def beta_binomial_analysis(
    metrics: TestMetrics,
    simulations: int = 10_000,
    rng: random.Random | None = None,
) -> BayesianOutcome:
    """Compare control and primary treatment with Beta-Binomial posteriors.

    Args:
        metrics: Test metrics snapshot.
        simulations: Number of Monte Carlo draws.
        rng: Optional random generator for reproducible runs.

    Returns:
        BayesianOutcome.

    Raises:
        InsufficientDataError: If the test cannot be compared yet.
    """
    control_arm, treatment_arm = select_arms(metrics)

    control = BetaPosterior.from_variation(control_arm)
    treatment = BetaPosterior.from_variation(treatment_arm)

    return BayesianOutcome(
        control_posterior=control,
        treatment_posterior=treatment,
        probability_treatment_better=probability_treatment_better(
            control, treatment, simulations, rng
        ),
        credible_interval=credible_interval(control, treatment),
        simulations=simulations,
    )
