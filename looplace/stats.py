"""Descriptive statistics and signal-detection helpers shared by the task metrics."""

from __future__ import annotations

import math
from collections.abc import Sequence

_ACKLAM_A = (
    -3.969683028665376e1,
    2.209460984245205e2,
    -2.759285104469687e2,
    1.38357751867269e2,
    -3.066479806614716e1,
    2.506628277459239,
)
_ACKLAM_B = (
    -5.447609879822406e1,
    1.615858368580409e2,
    -1.556989798598866e2,
    6.680131188771972e1,
    -1.328068155288572e1,
)
_ACKLAM_C = (
    -7.784894002430293e-3,
    -3.223964580411365e-1,
    -2.400758277161838,
    -2.549732539343734,
    4.374664141464968,
    2.938163982698783,
)
_ACKLAM_D = (
    7.784695709041462e-3,
    3.224671290700398e-1,
    2.445134137142996,
    3.754408661907416,
)

_P_LOW = 0.02425
_P_HIGH = 1.0 - _P_LOW
_RATE_EPSILON = 1e-6


def _horner(coefficients: Sequence[float], x: float) -> float:
    result = 0.0
    for coefficient in coefficients:
        result = result * x + coefficient
    return result


def mean(data: Sequence[float]) -> float:
    """Arithmetic mean, or 0.0 for an empty sequence."""
    if not data:
        return 0.0
    return sum(data) / len(data)


def std_dev(data: Sequence[float], center: float) -> float:
    """Sample standard deviation around ``center``; 0.0 for fewer than two values."""
    n = len(data)
    if n < 2:
        return 0.0
    variance = sum((value - center) ** 2 for value in data) / (n - 1.0)
    return math.sqrt(variance)


def percentile(sorted_values: Sequence[float], pct: float) -> float:
    """Linearly interpolated percentile of already sorted values.

    ``pct`` is a fraction in [0, 1] and is clamped to that range.
    """
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return sorted_values[0]

    clamped = min(max(pct, 0.0), 1.0)
    rank = clamped * (len(sorted_values) - 1.0)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return sorted_values[lower]
    weight = rank - lower
    low_value = sorted_values[lower]
    return low_value + (sorted_values[upper] - low_value) * weight


def inverse_normal_cdf(p: float) -> float:
    """Inverse CDF of the standard normal distribution (Acklam's approximation).

    The maximum absolute error is about 4.5e-4 over (0, 1); the bounds map to
    negative and positive infinity.
    """
    if p <= 0.0:
        return -math.inf
    if p >= 1.0:
        return math.inf

    if p < _P_LOW:
        q = math.sqrt(-2.0 * math.log(p))
        return _horner(_ACKLAM_C, q) / (_horner(_ACKLAM_D, q) * q + 1.0)

    if p > _P_HIGH:
        q = math.sqrt(-2.0 * math.log(1.0 - p))
        return -_horner(_ACKLAM_C, q) / (_horner(_ACKLAM_D, q) * q + 1.0)

    q = p - 0.5
    r = q * q
    return _horner(_ACKLAM_A, r) * q / (_horner(_ACKLAM_B, r) * r + 1.0)


def signal_detection_indices(
    hits: int, false_alarms: int, target_trials: int, non_target_trials: int
) -> tuple[float, float]:
    """Return ``(d_prime, criterion)`` using a log-linear rate correction."""
    hit_trials = float(max(target_trials, 1))
    noise_trials = float(max(non_target_trials, 1))

    adjusted_hit_rate = (hits + 0.5) / (hit_trials + 1.0)
    adjusted_fa_rate = (false_alarms + 0.5) / (noise_trials + 1.0)

    def _clamp(rate: float) -> float:
        return min(max(rate, _RATE_EPSILON), 1.0 - _RATE_EPSILON)

    z_hit = inverse_normal_cdf(_clamp(adjusted_hit_rate))
    z_fa = inverse_normal_cdf(_clamp(adjusted_fa_rate))

    d_prime = z_hit - z_fa
    criterion = -0.5 * (z_hit + z_fa)
    return d_prime, criterion