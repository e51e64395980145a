"""Volume anomalies: 7-day average volume as a z-score against the last 90 days."""

from typing import Dict, List

import pandas as pd

from ..analytics.statistics import mean, z_score
from ..utils.logger import get_logger
from .params import DEFAULT_VOLUME_PARAMS, VolumeParams
from .types import VolumeChange, VolumeMetric

logger = get_logger("volume_metrics")


def classify_volume_change(z: float, threshold: float = 1.0) -> VolumeChange:
    """INCREASE above +threshold, DECREASE below -threshold, NEUTRAL otherwise."""
    if z > threshold:
        return VolumeChange.INCREASE
    if z < -threshold:
        return VolumeChange.DECREASE
    return VolumeChange.NEUTRAL


def process_volume_metrics(
    assets: List[str],
    klines_map: Dict[str, pd.DataFrame],
    params: VolumeParams = DEFAULT_VOLUME_PARAMS,
) -> List[VolumeMetric]:
    metrics = []

    for asset in assets:
        candles = klines_map.get(asset)
        if candles is None or len(candles) < params.min_candles:
            continue

        volumes = candles["volume"].to_numpy(dtype=float)[-params.long_window:]
        avg_short = float(volumes[-params.short_window:].sum()) / params.short_window
        avg_long = mean(volumes)
        z = z_score(avg_short, volumes)

        metrics.append(VolumeMetric(
            symbol=asset,
            z_score=z,
            change_status=classify_volume_change(z, params.z_threshold),
            last_7_day_avg=avg_short,
            last_90_day_avg=avg_long,
        ))

    logger.debug(f"Volume metrics for {len(metrics)}/{len(assets)} assets")
    return metrics
