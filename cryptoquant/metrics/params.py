"""
Metric Processor Parameters
===========================

Windows and thresholds used by each processor. All lookbacks are in candles
of the configured interval (daily by default) unless stated otherwise.
"""

from dataclasses import dataclass, field
from typing import Tuple


DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class FundingParams:
    """Funding percentile parameters."""
    lookback_days: int = 90
    events_per_day: int = 3           # 8h funding
    days_per_year: int = 365


@dataclass(frozen=True)
class VolatilityParams:
    """Volatility regime parameters."""
    min_candles: int = 50
    window: int = 21                  # EW vol window
    history_days: int = 180


@dataclass(frozen=True)
class VolumeParams:
    """Volume anomaly parameters."""
    min_candles: int = 90
    short_window: int = 7
    long_window: int = 90
    z_threshold: float = 1.0


@dataclass(frozen=True)
class CorrelationParams:
    """Correlation matrix and rolling history parameters."""
    matrix_window: int = 30
    history_points: int = 90
    min_history: int = 90             # prior returns before a date is reportable
    rolling_windows: Tuple[int, ...] = (10, 30, 60, 90)


@dataclass(frozen=True)
class FactorParams:
    """Factor score parameters."""
    liquidity_window: int = 30        # days of dollar volume
    universe_size: int = 25           # top / bottom liquidity buckets
    return_periods: Tuple[int, ...] = (5, 10, 20)
    carry_periods: Tuple[int, ...] = (5, 10, 20)
    trend_periods: Tuple[int, ...] = (5, 10, 20, 40)
    min_carry_observations: int = 3
    trend_warmup: int = 50            # extra candles beyond the period
    trend_scale: float = 4.0


@dataclass(frozen=True)
class BreadthParams:
    """Market breadth parameters."""
    min_reference_candles: int = 600
    analysis_days: int = 500
    periods: Tuple[int, ...] = field(default=(20, 50, 100))


DEFAULT_FUNDING_PARAMS = FundingParams()
DEFAULT_VOLATILITY_PARAMS = VolatilityParams()
DEFAULT_VOLUME_PARAMS = VolumeParams()
DEFAULT_CORRELATION_PARAMS = CorrelationParams()
DEFAULT_FACTOR_PARAMS = FactorParams()
DEFAULT_BREADTH_PARAMS = BreadthParams()
