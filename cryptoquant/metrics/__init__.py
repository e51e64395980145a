"""Metric processors turning raw candles and funding into ranked signals."""

from .types import (
    VolumeChange,
    FundingMetric,
    VolatilityMetric,
    VolumeMetric,
    CorrelationMatrix,
    CorrelationPoint,
    CorrelationData,
    FactorMetric,
    FactorData,
    BreadthPoint,
    BreadthData,
    MarketSnapshot,
)
from .funding import process_funding_metrics
from .volatility import process_volatility_metrics
from .volume import process_volume_metrics, classify_volume_change
from .correlation import process_correlation_data
from .factors import process_factor_metrics, score_universe, liquidity_universes
from .breadth import process_breadth_metrics

__all__ = [
    "VolumeChange",
    "FundingMetric",
    "VolatilityMetric",
    "VolumeMetric",
    "CorrelationMatrix",
    "CorrelationPoint",
    "CorrelationData",
    "FactorMetric",
    "FactorData",
    "BreadthPoint",
    "BreadthData",
    "MarketSnapshot",
    "process_funding_metrics",
    "process_volatility_metrics",
    "process_volume_metrics",
    "classify_volume_change",
    "process_correlation_data",
    "process_factor_metrics",
    "score_universe",
    "liquidity_universes",
    "process_breadth_metrics",
]
