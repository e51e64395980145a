"""
Return correlation: a static matrix over the last 30 reference dates and a
rolling reference vs average-alt correlation history.

Each asset's daily log returns are indexed by ISO date once, and every
windowed lookup goes through that index. Alignment is by exact date; missing
dates are never filled.
"""

from typing import Dict, List

import numpy as np
import pandas as pd

from ..analytics.statistics import correlation
from ..utils.logger import get_logger
from .params import CorrelationParams, DEFAULT_CORRELATION_PARAMS
from .types import CorrelationData, CorrelationMatrix, CorrelationPoint

logger = get_logger("correlation_metrics")


def returns_by_date(candles: pd.DataFrame) -> pd.Series:
    """Daily log returns indexed by the close date of the later candle."""
    if candles is None or len(candles) < 2:
        return pd.Series(dtype=float)
    closes = candles["close"].to_numpy(dtype=float)
    returns = pd.Series(np.log(closes[1:] / closes[:-1]), index=candles["date"].to_numpy()[1:])
    return returns[~returns.index.duplicated(keep="last")]


def correlation_matrix(
    assets: List[str],
    returns: Dict[str, pd.Series],
    anchor_dates: List[str],
) -> CorrelationMatrix:
    """
    Pearson matrix over ``anchor_dates`` for assets that have every date.

    The diagonal is fixed at 1.
    """
    aligned: Dict[str, np.ndarray] = {}
    for asset in assets:
        series = returns.get(asset)
        if series is None:
            continue
        if all(d in series.index for d in anchor_dates):
            aligned[asset] = series.loc[anchor_dates].to_numpy(dtype=float) if anchor_dates else np.array([])

    matrix_assets = list(aligned)
    matrix = []
    for i, a in enumerate(matrix_assets):
        row = []
        for j, b in enumerate(matrix_assets):
            row.append(1.0 if i == j else correlation(aligned[a], aligned[b]))
        matrix.append(row)

    return CorrelationMatrix(assets=matrix_assets, matrix=matrix)


def average_alt_returns(
    alts: List[str],
    returns: Dict[str, pd.Series],
    dates: List[str],
) -> pd.Series:
    """Equal-weight mean return per date over the alts that have it, 0.0 if none do."""
    if not alts:
        return pd.Series(0.0, index=dates)
    frame = pd.DataFrame({a: returns[a] for a in alts}).reindex(dates)
    return frame.mean(axis=1, skipna=True).fillna(0.0)


def rolling_correlation_history(
    reference_returns: pd.Series,
    alt_returns: pd.Series,
    params: CorrelationParams = DEFAULT_CORRELATION_PARAMS,
) -> List[CorrelationPoint]:
    """Rolling reference vs average-alt correlation, oldest point first."""
    dates = list(reference_returns.index)
    ref = reference_returns.to_numpy(dtype=float)
    alt = alt_returns.reindex(dates).fillna(0.0).to_numpy(dtype=float)

    points = []
    for i in range(params.history_points):
        target = len(dates) - 1 - i
        if target < params.min_history:
            break

        values = []
        for window in params.rolling_windows:
            lo = target - window + 1
            values.append(correlation(ref[lo:target + 1], alt[lo:target + 1]))
        points.append(CorrelationPoint(dates[target], *values))

    points.reverse()
    return points


def process_correlation_data(
    assets: List[str],
    klines_map: Dict[str, pd.DataFrame],
    reference: str = "BTC",
    params: CorrelationParams = DEFAULT_CORRELATION_PARAMS,
) -> CorrelationData:
    reference_candles = klines_map.get(reference)
    if reference_candles is None or reference_candles.empty:
        logger.warning(f"Reference asset {reference} has no data, skipping correlation")
        return CorrelationData()

    returns = {asset: returns_by_date(klines_map[asset]) for asset in assets if asset in klines_map}
    returns.setdefault(reference, returns_by_date(reference_candles))
    reference_returns = returns[reference]

    anchor_dates = list(reference_returns.index[-params.matrix_window:])
    matrix = correlation_matrix(assets, returns, anchor_dates)

    alts = [a for a in matrix.assets if a != reference]
    alt_returns = average_alt_returns(alts, returns, list(reference_returns.index))
    history = rolling_correlation_history(reference_returns, alt_returns, params)

    logger.debug(f"Correlation matrix over {len(matrix.assets)} assets, {len(history)} history points")
    return CorrelationData(matrix=matrix, history=history)
