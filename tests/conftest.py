"""Shared fixtures: synthetic Binance payloads turned into candle/funding frames."""

import numpy as np
import pytest

from cryptoquant.data.gateway import parse_funding, parse_klines

DAY_MS = 24 * 60 * 60 * 1000
EIGHT_HOURS_MS = 8 * 60 * 60 * 1000
START_MS = 1_577_836_800_000  # 2020-01-01 00:00 UTC
NOW_MS = 1_700_000_000_000


def kline_rows(closes, volumes=None, start=START_MS):
    """Raw kline rows as the exchange sends them (numbers as strings)."""
    if volumes is None:
        volumes = [1000.0] * len(closes)
    rows = []
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        open_time = start + i * DAY_MS
        rows.append([
            open_time, str(close), str(close), str(close), str(close), str(volume),
            open_time + DAY_MS - 1, "0", 0, "0", "0", "0",
        ])
    return rows


def make_candles(closes, volumes=None, start=START_MS):
    return parse_klines(kline_rows(closes, volumes, start))


def funding_rows(rates, end=NOW_MS, step=EIGHT_HOURS_MS, symbol="BTCUSDT"):
    """Funding prints ending at ``end``, oldest first."""
    n = len(rates)
    return [
        {"symbol": symbol, "fundingRate": str(rate), "fundingTime": end - (n - 1 - i) * step}
        for i, rate in enumerate(rates)
    ]


def make_funding(rates, end=NOW_MS, step=EIGHT_HOURS_MS, symbol="BTCUSDT"):
    return parse_funding(funding_rows(rates, end, step, symbol))


def random_walk(n, seed=0, start=100.0, scale=0.02):
    rng = np.random.default_rng(seed)
    return (start * np.exp(np.cumsum(rng.normal(0, scale, n)))).tolist()


@pytest.fixture
def rng():
    return np.random.default_rng(42)
