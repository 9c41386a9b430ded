"""Statistics - pure computations behind experiment monitoring.

- Distribution primitives and random samplers
- Frequentist two-proportion z-test
- Bayesian Beta-Binomial comparison
- Power and sample-size analysis
"""

from ab_monitor.statistics.bayesian import (
    BayesianOutcome,
    BetaPosterior,
    beta_binomial_analysis,
    credible_interval,
    probability_treatment_better,
)
from ab_monitor.statistics.config import StatisticalConfig
from ab_monitor.statistics.frequentist import (
    ZTestResult,
    pooled_proportion,
    select_arms,
    two_proportion_z_test,
)
from ab_monitor.statistics.power import (
    analyze_power,
    estimate_daily_traffic,
    required_sample_size,
)
from ab_monitor.statistics.primitives import (
    beta_random,
    gamma_random,
    normal_cdf,
    normal_random,
    variance,
    z_critical,
)

__all__: list[str] = [
    "BayesianOutcome",
    "BetaPosterior",
    "StatisticalConfig",
    "ZTestResult",
    "analyze_power",
    "beta_binomial_analysis",
    "beta_random",
    "credible_interval",
    "estimate_daily_traffic",
    "gamma_random",
    "normal_cdf",
    "normal_random",
    "pooled_proportion",
    "probability_treatment_better",
    "required_sample_size",
    "select_arms",
    "two_proportion_z_test",
    "variance",
    "z_critical",
]
