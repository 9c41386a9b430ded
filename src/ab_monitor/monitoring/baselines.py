"""In-memory historical baseline provider."""


class InMemoryBaselineProvider:
    """Baseline conversion rates held in memory.

    Satisfies ``BaselineProviderProtocol``. Hosts with a real metrics
    warehouse implement the protocol against it instead.

    Example:
        >>> provider = InMemoryBaselineProvider({"control": 0.10})
        >>> await provider.get_baseline_rate("control")
        0.1
    """

    def __init__(self, baselines: dict[str, float] | None = None) -> None:
        """Initialize the provider.

        Args:
            baselines: Initial mapping of variation id to conversion rate.
        """
        self._baselines: dict[str, float] = {}
        for variation_id, rate in (baselines or {}).items():
            self._validate(variation_id, rate)
            self._baselines[variation_id] = rate

    @staticmethod
    def _validate(variation_id: str, rate: float) -> None:
        if not 0.0 <= rate <= 1.0:
            raise ValueError(
                f"Baseline for {variation_id} must be between 0.0 and 1.0, got {rate}"
            )

    async def get_baseline_rate(self, variation_id: str) -> float | None:
        """Get the historical conversion rate of a variation.

        Args:
            variation_id: Identifier of the variation.

        Returns:
            Baseline rate or None if unknown.
        """
        return self._baselines.get(variation_id)

    async def set_baseline_rate(self, variation_id: str, rate: float) -> None:
        """Store or replace a baseline.

        Args:
            variation_id: Identifier of the variation.
            rate: Conversion rate in [0, 1].
        """
        self._validate(variation_id, rate)
        self._baselines[variation_id] = rate

    async def remove_baseline(self, variation_id: str) -> bool:
        """Forget a baseline.

        Args:
            variation_id: Identifier of the variation.

        Returns:
            True if a baseline was removed.
        """
        return self._baselines.pop(variation_id, None) is not None
