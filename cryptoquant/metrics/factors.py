"""
Multi-horizon factor scores.

Four factors share one scoring routine (``score_universe``): a signal is
computed per asset and lookback period, centred on that period's
cross-sectional median (or not, for trend), and averaged across periods.

- Momentum: risk-normalized return, top-25 dollar-volume names.
- Mean reversion: the same signal inverted, bottom-25 dollar-volume names.
- Carry: mean/std of funding over the period, inverted, all names.
- Trend following: EMA-smoothed position of price in its recent range.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from ..analytics.statistics import ema, mean, median, stddev
from ..utils.logger import get_logger
from .funding import now_ms, recent_funding
from .params import DEFAULT_FACTOR_PARAMS, FactorParams
from .types import FactorData, FactorMetric

logger = get_logger("factor_engine")

SignalFn = Callable[[str, int], Optional[float]]
CombineFn = Callable[[float, float], float]


def liquidity_universes(
    assets: List[str],
    klines_map: Dict[str, pd.DataFrame],
    params: FactorParams = DEFAULT_FACTOR_PARAMS,
) -> Tuple[List[str], List[str]]:
    """
    Split assets into the most and least liquid buckets by trailing dollar volume.

    The bottom bucket never contains a top-bucket symbol, so the two are
    disjoint even when the universe is smaller than twice the bucket size.
    """
    dollar_volume = []
    for asset in assets:
        candles = klines_map.get(asset)
        if candles is None or len(candles) < params.liquidity_window:
            continue
        tail = candles.iloc[-params.liquidity_window:]
        dollar_volume.append((asset, float((tail["close"] * tail["volume"]).sum())))

    dollar_volume.sort(key=lambda item: item[1], reverse=True)
    ranked = [symbol for symbol, _ in dollar_volume]

    top = ranked[:params.universe_size]
    bottom = [s for s in ranked[-params.universe_size:] if s not in top]
    return top, bottom


def score_universe(
    universe: Sequence[str],
    periods: Sequence[int],
    signal_fn: SignalFn,
    combine_fn: CombineFn,
) -> List[FactorMetric]:
    """
    Average of per-period ``combine_fn(signal, median)`` per asset, sorted descending.

    A None signal excludes the asset from that period only; assets with no
    signal in any period are dropped.
    """
    period_signals: Dict[int, Dict[str, float]] = {}
    for p in periods:
        signals = {}
        for symbol in universe:
            s = signal_fn(symbol, p)
            if s is not None:
                signals[symbol] = s
        period_signals[p] = signals

    medians = {p: median(list(period_signals[p].values())) for p in periods}

    results = []
    for symbol in universe:
        scores = [
            combine_fn(period_signals[p][symbol], medians[p])
            for p in periods
            if symbol in period_signals[p]
        ]
        if scores:
            results.append(FactorMetric(symbol=symbol, score=sum(scores) / len(scores)))

    return sorted(results, key=lambda m: m.score, reverse=True)


def return_signal(candles: Optional[pd.DataFrame], days: int) -> Optional[float]:
    """Cumulative simple return over ``days`` divided by the stddev of daily returns."""
    if candles is None or len(candles) < days + 1:
        return None

    closes = candles["close"].to_numpy(dtype=float)[-(days + 1):]
    cum_return = (closes[-1] - closes[0]) / closes[0]
    daily = (closes[1:] - closes[:-1]) / closes[:-1]
    std = stddev(daily)
    return 0.0 if std == 0 else float(cum_return / std)


def carry_signal(
    funding: Optional[pd.DataFrame],
    days: int,
    now: int,
    min_observations: int = 3,
) -> Optional[float]:
    """Mean funding rate over the last ``days`` days divided by its stddev."""
    if funding is None or funding.empty:
        return None

    window = recent_funding(funding, days, now)
    if len(window) < min_observations:
        return None

    rates = window["funding_rate"].to_numpy(dtype=float)
    std = stddev(rates)
    return 0.0 if std == 0 else mean(rates) / std


def trend_signal(
    candles: Optional[pd.DataFrame],
    days: int,
    params: FactorParams = DEFAULT_FACTOR_PARAMS,
) -> Optional[float]:
    """
    EMA of ``4 * (close - mid) / range`` over the last ``2 * days`` candles.

    mid and range come from the trailing ``days`` closes at each point; a flat
    window contributes 0.
    """
    if candles is None or len(candles) < days + params.trend_warmup:
        return None

    closes = candles["close"].to_numpy(dtype=float)
    lookback = days * 2
    windows = sliding_window_view(closes, days)[-lookback:]
    if len(windows) == 0:
        return 0.0

    highs = windows.max(axis=1)
    lows = windows.min(axis=1)
    current = windows[:, -1]
    spread = highs - lows
    mid = (highs + lows) / 2

    raw = np.zeros(len(windows))
    has_range = spread > 0
    raw[has_range] = params.trend_scale * (current[has_range] - mid[has_range]) / spread[has_range]

    return ema(raw, max(2, days // 4))


def process_factor_metrics(
    assets: List[str],
    klines_map: Dict[str, pd.DataFrame],
    funding_map: Dict[str, pd.DataFrame],
    now: Optional[int] = None,
    params: FactorParams = DEFAULT_FACTOR_PARAMS,
) -> FactorData:
    now = now_ms() if now is None else now
    top, bottom = liquidity_universes(assets, klines_map, params)

    def returns_fn(symbol: str, days: int) -> Optional[float]:
        return return_signal(klines_map.get(symbol), days)

    def carry_fn(symbol: str, days: int) -> Optional[float]:
        return carry_signal(funding_map.get(symbol), days, now, params.min_carry_observations)

    def trend_fn(symbol: str, days: int) -> Optional[float]:
        return trend_signal(klines_map.get(symbol), days, params)

    momentum = score_universe(top, params.return_periods, returns_fn, lambda s, m: s - m)
    mean_reversion = score_universe(bottom, params.return_periods, returns_fn, lambda s, m: -(s - m))
    carry = score_universe(assets, params.carry_periods, carry_fn, lambda s, m: -(s - m))
    trend_following = score_universe(assets, params.trend_periods, trend_fn, lambda s, m: s)

    logger.debug(
        f"Factors: momentum={len(momentum)} mean_reversion={len(mean_reversion)} "
        f"carry={len(carry)} trend={len(trend_following)}"
    )
    return FactorData(
        trend_following=trend_following,
        momentum=momentum,
        mean_reversion=mean_reversion,
        carry=carry,
    )
