"""
Statistical primitives shared by the metric processors.

All functions are pure and accept any sequence of floats (lists, tuples,
numpy arrays, pandas Series). Degenerate input (empty, constant) resolves to
0.0 instead of raising or returning NaN.
"""

import math
from typing import Sequence

import numpy as np

# RiskMetrics decay for exponentially weighted volatility
EW_DECAY = 0.94

# Relative floor below which a sum-formula variance counts as zero
_VARIANCE_EPS = 1e-12


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for empty input."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.sum() / arr.size)


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N), 0.0 for empty input."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    mu = arr.sum() / arr.size
    return float(math.sqrt(((arr - mu) ** 2).sum() / arr.size))


def median(values: Sequence[float]) -> float:
    """Median; average of the two middle elements for even N. 0.0 for empty input."""
    arr = np.sort(_as_array(values))
    n = arr.size
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2 == 0:
        return float((arr[mid - 1] + arr[mid]) / 2)
    return float(arr[mid])


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation using the sum-based formula.

    Returns 0.0 when the lengths differ, either series is empty, or one of
    them is constant. That 0.0 is a fallback, not a measured correlation.
    The result is clipped to [-1, 1].
    """
    xa = _as_array(x)
    ya = _as_array(y)
    n = xa.size
    if n != ya.size or n == 0:
        return 0.0

    sum_x = xa.sum()
    sum_y = ya.sum()
    sum_xy = (xa * ya).sum()
    sum_x2 = (xa * xa).sum()
    sum_y2 = (ya * ya).sum()

    var_x = n * sum_x2 - sum_x * sum_x
    var_y = n * sum_y2 - sum_y * sum_y
    # Constant series leave only cancellation noise in n*Σx² - (Σx)²
    if var_x <= _VARIANCE_EPS * n * sum_x2 or var_y <= _VARIANCE_EPS * n * sum_y2:
        return 0.0

    numerator = n * sum_xy - sum_x * sum_y
    return float(min(1.0, max(-1.0, numerator / math.sqrt(var_x * var_y))))


def percentile_rank(data: Sequence[float], value: float, use_absolute: bool = False) -> float:
    """
    Rank of ``value`` within ``data`` on a 0-100 scale.

    Position is the index of the first sorted element >= value (len(data) if
    none), so ties with the value count as above it. With ``use_absolute``
    both data and value are compared by magnitude.
    """
    arr = _as_array(data)
    if arr.size == 0:
        return 0.0
    target = value
    if use_absolute:
        arr = np.abs(arr)
        target = abs(value)

    arr = np.sort(arr)
    position = int(np.searchsorted(arr, target, side="left"))
    return position / arr.size * 100


def exponential_weighted_vol(returns: Sequence[float], window_size: int) -> float:
    """
    Exponentially weighted volatility of the last ``window_size`` returns.

    Weights are ``EW_DECAY ** i`` with i=0 on the most recent return,
    normalized to sum to 1. Variance is taken around the simple mean of the
    window. Returns 0.0 when fewer than ``window_size`` returns are given.
    """
    arr = _as_array(returns)
    if window_size <= 0 or arr.size < window_size:
        return 0.0

    window = arr[-window_size:]
    weights = EW_DECAY ** np.arange(window_size)
    weights = weights / weights.sum()

    centre = window.sum() / window_size
    newest_first = window[::-1]
    variance = float((weights * (newest_first - centre) ** 2).sum())
    return math.sqrt(max(variance, 0.0))


def z_score(value: float, history: Sequence[float]) -> float:
    """(value - mean) / stddev of history; 0.0 when stddev is 0."""
    std = stddev(history)
    if std == 0:
        return 0.0
    return (value - mean(history)) / std


def ema(series: Sequence[float], period: int) -> float:
    """
    Final value of an exponential moving average seeded with the first element.

    Smoothing factor is 2 / (period + 1). Returns 0.0 for an empty series.
    """
    values = list(series)
    if not values:
        return 0.0
    alpha = 2.0 / (period + 1)
    current = float(values[0])
    for v in values[1:]:
        current = alpha * float(v) + (1 - alpha) * current
    return current
