"""Statistical primitives."""

from .statistics import (
    mean,
    stddev,
    median,
    correlation,
    percentile_rank,
    exponential_weighted_vol,
    z_score,
    ema,
    EW_DECAY,
)

__all__ = [
    "mean",
    "stddev",
    "median",
    "correlation",
    "percentile_rank",
    "exponential_weighted_vol",
    "z_score",
    "ema",
    "EW_DECAY",
]
