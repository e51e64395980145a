"""Market data acquisition."""

from .gateway import (
    MarketDataGateway,
    RunCache,
    parse_klines,
    parse_funding,
    empty_candles,
    empty_funding,
)

__all__ = [
    "MarketDataGateway",
    "RunCache",
    "parse_klines",
    "parse_funding",
    "empty_candles",
    "empty_funding",
]
