"""Statistical configuration for experiment analysis."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ab_monitor.core.exceptions import ConfigurationError


class StatisticalConfig(BaseModel):
    """Tunable parameters shared by every analysis.

    Instances are immutable; use ``merged()`` to derive a replacement.

    Example:
        >>> config = StatisticalConfig.create(significance_level=0.01)
        >>> stricter = config.merged(power_level=0.9)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    significance_level: float = Field(
        default=0.05,
        gt=0.0,
        lt=1.0,
        description="Alpha for the two-tailed z-test",
    )
    power_level: float = Field(
        default=0.8,
        gt=0.0,
        lt=1.0,
        description="Target statistical power for sample-size planning",
    )
    minimum_sample_size: int = Field(
        default=1000,
        ge=1,
        description="Visitors below which a non-significant test keeps running",
    )
    minimum_detectable_effect: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Smallest absolute rate difference worth detecting",
    )
    early_stopping_enabled: bool = Field(
        default=True,
        description="Raise early-winner alerts on significance",
    )
    bayesian_enabled: bool = Field(
        default=True,
        description="Run the Beta-Binomial analysis alongside the z-test",
    )
    monitoring_interval_ms: int = Field(
        default=300_000,
        gt=0,
        description="Milliseconds between periodic analysis ticks",
    )
    max_test_duration_days: float = Field(
        default=30,
        gt=0,
        description="Age after which a test is recommended for stopping",
    )
    monte_carlo_simulations: int = Field(
        default=10_000,
        ge=100,
        description="Posterior draws per Bayesian analysis",
    )

    @property
    def monitoring_interval_seconds(self) -> float:
        """Tick interval in seconds."""
        return self.monitoring_interval_ms / 1000

    @classmethod
    def create(cls, **values: Any) -> "StatisticalConfig":
        """Build a validated config.

        Args:
            **values: Field overrides.

        Returns:
            StatisticalConfig instance.

        Raises:
            ConfigurationError: If any value is out of range or unknown.
        """
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid statistical configuration: {e}") from e

    def merged(self, **changes: Any) -> "StatisticalConfig":
        """Return a new validated config with ``changes`` applied.

        Args:
            **changes: Field overrides.

        Returns:
            New StatisticalConfig; this instance is unchanged.
        """
        return self.create(**{**self.model_dump(), **changes})
