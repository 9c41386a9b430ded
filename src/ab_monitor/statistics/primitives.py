"""Statistics primitives - distribution functions and random samplers.

Pure functions only. The samplers take an optional ``random.Random`` so
callers can seed them; without one they draw from the module-level generator.
"""

import math
import random
from collections.abc import Sequence

# Abramowitz & Stegun 7.1.26, |error| < 1.5e-7
_ERF_A1 = 0.254829592
_ERF_A2 = -0.284496736
_ERF_A3 = 1.421413741
_ERF_A4 = -1.453152027
_ERF_A5 = 1.061405429
_ERF_P = 0.3275911

# Upper-tail probability -> z. Coarse lookup, not an inverse CDF.
_Z_CRITICAL_TABLE: tuple[tuple[float, float], ...] = (
    (0.001, 3.291),
    (0.005, 2.576),
    (0.01, 2.326),
    (0.025, 1.96),
    (0.05, 1.645),
)
_Z_CRITICAL_FALLBACK = 1.282

_default_rng = random.Random()


def erf(x: float) -> float:
    """Approximate the error function.

    Args:
        x: Input value.

    Returns:
        erf(x) with absolute error below 1.5e-7.
    """
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)

    t = 1.0 / (1.0 + _ERF_P * x)
    y = 1.0 - (
        ((((_ERF_A5 * t + _ERF_A4) * t) + _ERF_A3) * t + _ERF_A2) * t + _ERF_A1
    ) * t * math.exp(-x * x)

    return sign * y


def normal_cdf(x: float) -> float:
    """Cumulative distribution function of the standard normal.

    Args:
        x: z-score.

    Returns:
        P(Z <= x).
    """
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def z_critical(alpha: float) -> float:
    """Map a tail probability to a z-score.

    Uses a fixed table of common values (0.001, 0.005, 0.01, 0.025, 0.05);
    anything larger falls back to 1.282 (alpha = 0.1). The first table entry
    whose probability is >= ``alpha`` wins.

    Args:
        alpha: One-sided tail probability.

    Returns:
        Critical z value.
    """
    for tail, z in _Z_CRITICAL_TABLE:
        if alpha <= tail:
            return z
    return _Z_CRITICAL_FALLBACK


def _uniform_open(rng: random.Random) -> float:
    """Draw from (0, 1), excluding zero."""
    u = 0.0
    while u == 0.0:
        u = rng.random()
    return u


def normal_random(rng: random.Random | None = None) -> float:
    """Draw a standard normal variate with the Box-Muller transform.

    Args:
        rng: Optional random generator.

    Returns:
        Sample from N(0, 1).
    """
    rng = rng or _default_rng
    u = _uniform_open(rng)
    v = _uniform_open(rng)
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def gamma_random(shape: float, scale: float = 1.0, rng: random.Random | None = None) -> float:
    """Draw from Gamma(shape, scale) using Marsaglia and Tsang's method.

    For ``shape < 1`` the draw is boosted from Gamma(shape + 1) and scaled by
    ``U ** (1 / shape)``.

    Args:
        shape: Shape parameter (> 0).
        scale: Scale parameter (> 0).
        rng: Optional random generator.

    Returns:
        Gamma variate.
    """
    if shape <= 0 or scale <= 0:
        raise ValueError(f"shape and scale must be positive, got {shape}, {scale}")

    rng = rng or _default_rng

    if shape < 1:
        return gamma_random(shape + 1, scale, rng) * _uniform_open(rng) ** (1 / shape)

    d = shape - 1 / 3
    c = 1 / math.sqrt(9 * d)

    while True:
        x = normal_random(rng)
        v = 1 + c * x
        if v <= 0:
            continue

        v = v * v * v
        u = _uniform_open(rng)

        if u < 1 - 0.0331 * (x * x) * (x * x):
            return d * v * scale
        if math.log(u) < 0.5 * x * x + d * (1 - v + math.log(v)):
            return d * v * scale


def beta_random(a: float, b: float, rng: random.Random | None = None) -> float:
    """Draw from Beta(a, b) as the ratio of two Gamma draws.

    Args:
        a: First shape parameter (> 0).
        b: Second shape parameter (> 0).
        rng: Optional random generator.

    Returns:
        Beta variate in [0, 1].
    """
    x = gamma_random(a, 1.0, rng)
    y = gamma_random(b, 1.0, rng)
    return x / (x + y)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean (0.0 for an empty sequence)."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def variance(values: Sequence[float]) -> float:
    """Population variance (0.0 for an empty sequence)."""
    if not values:
        return 0.0
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / len(values)


def beta_mean(a: float, b: float) -> float:
    """Mean of Beta(a, b)."""
    return a / (a + b)


def beta_variance(a: float, b: float) -> float:
    """Variance of Beta(a, b)."""
    total = a + b
    return (a * b) / (total * total * (total + 1))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp ``value`` into [low, high]."""
    return max(low, min(high, value))
