"""Tests for distribution primitives and samplers."""

import random

import pytest

from ab_monitor.statistics.primitives import (
    beta_random,
    clamp,
    erf,
    gamma_random,
    mean,
    normal_cdf,
    normal_random,
    variance,
    z_critical,
)


class TestNormalCdf:
    """Tests for erf and normal_cdf."""

    def test_center(self) -> None:
        """Test CDF at zero is one half."""
        assert normal_cdf(0) == pytest.approx(0.5, abs=1e-6)

    def test_known_quantiles(self) -> None:
        """Test CDF at common critical values."""
        assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-4)
        assert normal_cdf(-1.645) == pytest.approx(0.05, abs=1e-4)

    def test_symmetry(self) -> None:
        """Test CDF(-x) = 1 - CDF(x)."""
        for x in (0.3, 1.0, 2.5):
            assert normal_cdf(-x) == pytest.approx(1 - normal_cdf(x), abs=1e-6)

    def test_monotonic(self) -> None:
        """Test CDF never decreases."""
        values = [normal_cdf(x / 10) for x in range(-40, 41)]
        assert values == sorted(values)

    def test_erf_is_odd(self) -> None:
        """Test erf(-x) = -erf(x)."""
        assert erf(-0.7) == pytest.approx(-erf(0.7))


class TestZCritical:
    """Tests for the z-critical lookup."""

    @pytest.mark.parametrize(
        ("alpha", "expected"),
        [
            (0.001, 3.291),
            (0.005, 2.576),
            (0.01, 2.326),
            (0.025, 1.96),
            (0.05, 1.645),
        ],
    )
    def test_table_entries(self, alpha: float, expected: float) -> None:
        """Test exact table lookups."""
        assert z_critical(alpha) == expected

    def test_between_entries_rounds_up_to_next_tail(self) -> None:
        """Test values between entries use the next larger tail."""
        assert z_critical(0.02) == 1.96

    def test_fallback(self) -> None:
        """Test large tails fall back to the alpha=0.1 value."""
        assert z_critical(0.2) == 1.282


class TestSamplers:
    """Tests for random samplers."""

    def test_normal_moments(self) -> None:
        """Test normal draws have mean 0 and variance 1."""
        rng = random.Random(1)
        draws = [normal_random(rng) for _ in range(20_000)]
        assert mean(draws) == pytest.approx(0.0, abs=0.05)
        assert variance(draws) == pytest.approx(1.0, abs=0.05)

    def test_gamma_mean(self) -> None:
        """Test Gamma(shape, scale) has mean shape * scale."""
        rng = random.Random(2)
        draws = [gamma_random(3.0, 2.0, rng) for _ in range(10_000)]
        assert mean(draws) == pytest.approx(6.0, rel=0.05)

    def test_gamma_small_shape(self) -> None:
        """Test the shape < 1 boost path."""
        rng = random.Random(3)
        draws = [gamma_random(0.5, 1.0, rng) for _ in range(10_000)]
        assert all(d > 0 for d in draws)
        assert mean(draws) == pytest.approx(0.5, abs=0.05)

    @pytest.mark.parametrize(("shape", "scale"), [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0)])
    def test_gamma_invalid_parameters(self, shape: float, scale: float) -> None:
        """Test non-positive parameters are rejected."""
        with pytest.raises(ValueError):
            gamma_random(shape, scale)

    def test_beta_range(self) -> None:
        """Test Beta draws stay inside [0, 1]."""
        rng = random.Random(4)
        for a, b in ((1, 1), (0.5, 0.5), (50, 950)):
            for _ in range(500):
                assert 0.0 <= beta_random(a, b, rng) <= 1.0

    def test_beta_mean(self) -> None:
        """Test Beta(2, 2) draws average one half."""
        rng = random.Random(5)
        draws = [beta_random(2, 2, rng) for _ in range(10_000)]
        assert mean(draws) == pytest.approx(0.5, abs=0.02)

    def test_seeded_draws_repeat(self) -> None:
        """Test identical seeds give identical draws."""
        first = [beta_random(3, 7, random.Random(9)) for _ in range(3)]
        second = [beta_random(3, 7, random.Random(9)) for _ in range(3)]
        assert first == second


class TestHelpers:
    """Tests for small numeric helpers."""

    def test_variance_is_population_variance(self) -> None:
        """Test variance divides by n."""
        assert variance([0.05, 0.30]) == pytest.approx(0.015625)

    def test_empty_sequences(self) -> None:
        """Test empty input gives zero."""
        assert mean([]) == 0.0
        assert variance([]) == 0.0

    def test_clamp(self) -> None:
        """Test clamping into the unit interval."""
        assert clamp(1.4) == 1.0
        assert clamp(-0.2) == 0.0
        assert clamp(0.3) == 0.3
