"""Output records produced by the metric processors."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import List


class VolumeChange(str, Enum):
    """Volume anomaly state from the 7-day vs 90-day z-score."""
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    NEUTRAL = "NEUTRAL"


@dataclass
class FundingMetric:
    symbol: str
    current_rate: float      # annualized
    percentile: float        # 0-100, by magnitude

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class VolatilityMetric:
    symbol: str
    current_vol: float       # daily EW volatility
    percentile: float        # 0-100 vs the last 180 days

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class VolumeMetric:
    symbol: str
    z_score: float
    change_status: VolumeChange
    last_7_day_avg: float
    last_90_day_avg: float

    def to_dict(self) -> dict:
        d = asdict(self)
        d["change_status"] = self.change_status.value
        return d


@dataclass
class CorrelationMatrix:
    """matrix[i][j] is the correlation between assets[i] and assets[j]."""
    assets: List[str] = field(default_factory=list)
    matrix: List[List[float]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CorrelationPoint:
    date: str
    corr10: float
    corr30: float
    corr60: float
    corr90: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CorrelationData:
    matrix: CorrelationMatrix = field(default_factory=CorrelationMatrix)
    history: List[CorrelationPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "matrix": self.matrix.to_dict(),
            "history": [p.to_dict() for p in self.history],
        }


@dataclass
class FactorMetric:
    symbol: str
    score: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FactorData:
    trend_following: List[FactorMetric] = field(default_factory=list)
    momentum: List[FactorMetric] = field(default_factory=list)
    mean_reversion: List[FactorMetric] = field(default_factory=list)
    carry: List[FactorMetric] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "trend_following": [m.to_dict() for m in self.trend_following],
            "momentum": [m.to_dict() for m in self.momentum],
            "mean_reversion": [m.to_dict() for m in self.mean_reversion],
            "carry": [m.to_dict() for m in self.carry],
        }


@dataclass
class BreadthPoint:
    date: str
    val20: float
    val50: float
    val100: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BreadthData:
    above_sma: List[BreadthPoint] = field(default_factory=list)
    range_position: List[BreadthPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "above_sma": [p.to_dict() for p in self.above_sma],
            "range_position": [p.to_dict() for p in self.range_position],
        }


@dataclass
class MarketSnapshot:
    """Everything one refresh produces, handed to the presentation layer."""
    funding: List[FundingMetric] = field(default_factory=list)
    volatility: List[VolatilityMetric] = field(default_factory=list)
    volume: List[VolumeMetric] = field(default_factory=list)
    correlation: CorrelationData = field(default_factory=CorrelationData)
    factors: FactorData = field(default_factory=FactorData)
    breadth: BreadthData = field(default_factory=BreadthData)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "funding": [m.to_dict() for m in self.funding],
            "volatility": [m.to_dict() for m in self.volatility],
            "volume": [m.to_dict() for m in self.volume],
            "correlation": self.correlation.to_dict(),
            "factors": self.factors.to_dict(),
            "breadth": self.breadth.to_dict(),
        }
