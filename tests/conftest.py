"""Pytest fixtures for ab-monitor tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from ab_monitor.models import TestMetrics, VariationMetrics
from ab_monitor.statistics.config import StatisticalConfig

MetricsFactory = Callable[..., TestMetrics]


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_metrics(now: datetime) -> MetricsFactory:
    """Factory for two-arm test metrics.

    Each arm is a (visitors, conversions) tuple.
    """

    def _make(
        *arms: tuple[int, int],
        test_id: str = "checkout-cta",
        age_days: float = 7.0,
        recent_visitors: int | None = None,
    ) -> TestMetrics:
        variations = [
            VariationMetrics(
                variation_id="control" if i == 0 else f"variant_{i}",
                name="Control" if i == 0 else f"Variant {i}",
                visitors=visitors,
                conversions=conversions,
            )
            for i, (visitors, conversions) in enumerate(arms)
        ]
        return TestMetrics(
            test_id=test_id,
            variations=variations,
            start_time=now - timedelta(days=age_days),
            last_updated=now,
            recent_visitors=recent_visitors,
        )

    return _make


@pytest.fixture
def winning_metrics(make_metrics: MetricsFactory) -> TestMetrics:
    """Treatment converts at 6% against a 5% control (significant)."""
    return make_metrics((10_000, 500), (10_000, 600))


@pytest.fixture
def flat_metrics(make_metrics: MetricsFactory) -> TestMetrics:
    """Treatment converts at 5.2% against a 5% control (not significant)."""
    return make_metrics((10_000, 500), (10_000, 520))


@pytest.fixture
def config() -> StatisticalConfig:
    """Default statistical configuration."""
    return StatisticalConfig()
