"""
Market breadth over a 500-day timeline anchored on the reference asset.

For every timeline date and lookback p in (20, 50, 100):
- above_sma: % of eligible assets closing above their p-candle SMA
- range_position: mean of max(close - low, 0) / (high - low) over the
  p-candle window, scaled to 0-100

An asset is eligible for p on a date once it has at least p prior candles,
so younger listings join partway through the timeline.
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from ..utils.logger import get_logger
from .params import BreadthParams, DEFAULT_BREADTH_PARAMS
from .types import BreadthData, BreadthPoint

logger = get_logger("breadth_metrics")


@dataclass
class _WindowStats:
    """Trailing-window SMA/high/low indexed by candle position (NaN before p)."""
    sma: np.ndarray
    high: np.ndarray
    low: np.ndarray


def window_stats(closes: np.ndarray, period: int) -> _WindowStats:
    n = len(closes)
    sma = np.full(n, np.nan)
    high = np.full(n, np.nan)
    low = np.full(n, np.nan)
    if n > period:
        # window ending at idx starts at idx - period + 1; keep idx >= period
        windows = sliding_window_view(closes, period)[1:]
        sma[period:] = windows.sum(axis=1) / period
        high[period:] = windows.max(axis=1)
        low[period:] = windows.min(axis=1)
    return _WindowStats(sma=sma, high=high, low=low)


class _AssetHistory:
    """Closes, close-time lookup and per-period window stats for one asset."""

    def __init__(self, candles: pd.DataFrame, periods):
        self.closes = candles["close"].to_numpy(dtype=float)
        self.position = {int(t): i for i, t in enumerate(candles["close_time"].to_numpy())}
        self.stats = {p: window_stats(self.closes, p) for p in periods}


def process_breadth_metrics(
    assets: List[str],
    klines_map: Dict[str, pd.DataFrame],
    reference: str = "BTC",
    params: BreadthParams = DEFAULT_BREADTH_PARAMS,
) -> BreadthData:
    reference_candles = klines_map.get(reference)
    if reference_candles is None or len(reference_candles) < params.min_reference_candles:
        logger.info(f"Breadth needs {params.min_reference_candles} {reference} candles, skipping")
        return BreadthData()

    periods = params.periods
    timeline = reference_candles.iloc[-params.analysis_days:]
    histories = {
        asset: _AssetHistory(klines_map[asset], periods)
        for asset in assets
        if klines_map.get(asset) is not None and not klines_map[asset].empty
    }

    above_sma: List[BreadthPoint] = []
    range_position: List[BreadthPoint] = []

    for close_time, date in zip(timeline["close_time"].to_numpy(), timeline["date"].to_numpy()):
        close_time = int(close_time)
        above = {p: 0 for p in periods}
        eligible = {p: 0 for p in periods}
        range_sum = {p: 0.0 for p in periods}
        range_count = {p: 0 for p in periods}

        for history in histories.values():
            idx = history.position.get(close_time)
            if idx is None:
                continue
            price = history.closes[idx]

            for p in periods:
                if idx < p:
                    continue
                stats = history.stats[p]
                eligible[p] += 1
                if price > stats.sma[idx]:
                    above[p] += 1
                high, low = stats.high[idx], stats.low[idx]
                if high > low:
                    range_sum[p] += max(price - low, 0.0) / (high - low)
                    range_count[p] += 1

        pct = [above[p] / eligible[p] * 100 if eligible[p] > 0 else 0.0 for p in periods]
        pos = [range_sum[p] / range_count[p] * 100 if range_count[p] > 0 else 0.0 for p in periods]
        above_sma.append(BreadthPoint(str(date), *pct))
        range_position.append(BreadthPoint(str(date), *pos))

    logger.debug(f"Breadth over {len(histories)} assets, {len(above_sma)} dates")
    return BreadthData(above_sma=above_sma, range_position=range_position)
