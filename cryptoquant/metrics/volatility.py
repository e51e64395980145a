"""Volatility regime: current EW volatility ranked against its own trailing history."""

from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ..analytics.statistics import exponential_weighted_vol, percentile_rank
from ..utils.logger import get_logger
from .params import DEFAULT_VOLATILITY_PARAMS, VolatilityParams
from .types import VolatilityMetric

logger = get_logger("volatility_metrics")


def log_returns(candles: pd.DataFrame) -> np.ndarray:
    """ln(close[t] / close[t-1]) for every candle after the first."""
    closes = candles["close"].to_numpy(dtype=float)
    if closes.size < 2:
        return np.array([], dtype=float)
    return np.log(closes[1:] / closes[:-1])


def volatility_history(returns: np.ndarray, window: int, history_days: int) -> List[float]:
    """
    EW volatility for each of the last ``history_days`` days, newest first.

    Stops early once fewer than ``window`` returns precede a day.
    """
    history = []
    for i in range(history_days):
        end = len(returns) - i
        start = end - window
        if start < 0:
            break
        history.append(exponential_weighted_vol(returns[start:end], window))
    return history


def process_volatility_metrics(
    assets: List[str],
    klines_map: Dict[str, pd.DataFrame],
    params: VolatilityParams = DEFAULT_VOLATILITY_PARAMS,
) -> List[VolatilityMetric]:
    metrics = []

    for asset in assets:
        candles = klines_map.get(asset)
        if candles is None or len(candles) < params.min_candles:
            continue

        returns = log_returns(candles)
        if len(returns) < params.window:
            continue

        history = volatility_history(returns, params.window, params.history_days)
        if not history:
            continue

        current_vol = history[0]
        percentile = percentile_rank(history, current_vol, use_absolute=False)
        metrics.append(VolatilityMetric(symbol=asset, current_vol=current_vol, percentile=percentile))

    logger.debug(f"Volatility metrics for {len(metrics)}/{len(assets)} assets")
    return metrics
