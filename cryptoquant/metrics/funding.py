"""Funding-rate extremity: where today's annualized funding sits vs the last 90 days."""

import time
from typing import Dict, List, Optional

import pandas as pd

from ..analytics.statistics import percentile_rank
from ..utils.logger import get_logger
from .params import DAY_MS, DEFAULT_FUNDING_PARAMS, FundingParams
from .types import FundingMetric

logger = get_logger("funding_metrics")


def now_ms() -> int:
    return int(time.time() * 1000)


def recent_funding(funding: pd.DataFrame, days: int, now: int) -> pd.DataFrame:
    """Funding prints no older than ``days`` days before ``now``."""
    if funding is None or funding.empty:
        return funding
    return funding[(now - funding["timestamp"]) <= days * DAY_MS]


def process_funding_metrics(
    assets: List[str],
    funding_map: Dict[str, pd.DataFrame],
    now: Optional[int] = None,
    params: FundingParams = DEFAULT_FUNDING_PARAMS,
) -> List[FundingMetric]:
    """
    Annualized funding percentile per asset, ranked by magnitude.

    Assets without funding history, or without any print in the lookback
    window, are left out.
    """
    now = now_ms() if now is None else now
    annualize = params.events_per_day * params.days_per_year
    metrics = []

    for asset in assets:
        rates = funding_map.get(asset)
        if rates is None or rates.empty:
            continue

        recent = recent_funding(rates, params.lookback_days, now)
        if recent.empty:
            continue

        values = (recent["funding_rate"] * annualize).tolist()
        current_rate = values[-1]
        percentile = percentile_rank(values, current_rate, use_absolute=True)
        metrics.append(FundingMetric(symbol=asset, current_rate=current_rate, percentile=percentile))

    logger.debug(f"Funding metrics for {len(metrics)}/{len(assets)} assets")
    return metrics
