"""
Market data gateway for Binance spot klines and perpetual funding history.

Every request is tried directly first and, on any failure, exactly once more
through a pass-through relay. A symbol whose data cannot be fetched comes back
as an empty DataFrame so one unavailable asset never stops the others.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urlencode

import aiohttp
import pandas as pd

from ..utils.config import DataSourceConfig
from ..utils.logger import get_logger

logger = get_logger("market_gateway")

KLINE_COLUMNS = ["open_time", "open", "high", "low", "close", "volume", "close_time"]
CANDLE_COLUMNS = KLINE_COLUMNS + ["date"]
FUNDING_COLUMNS = ["symbol", "funding_rate", "timestamp"]


def empty_candles() -> pd.DataFrame:
    return pd.DataFrame(columns=CANDLE_COLUMNS)


def empty_funding() -> pd.DataFrame:
    return pd.DataFrame(columns=FUNDING_COLUMNS)


class RunCache:
    """
    Per-run cache of fetched series.

    Candles are keyed by (symbol, interval, limit), funding by symbol. The
    monitor clears it at the start of every refresh so manual refreshes never
    see stale data.
    """

    def __init__(self):
        self.candles: Dict[Tuple[str, str, int], pd.DataFrame] = {}
        self.funding: Dict[str, pd.DataFrame] = {}

    def clear(self) -> None:
        self.candles.clear()
        self.funding.clear()

    def __len__(self) -> int:
        return len(self.candles) + len(self.funding)


def parse_klines(rows: list) -> pd.DataFrame:
    """Turn raw Binance kline rows into a chronological candle DataFrame."""
    if not rows:
        return empty_candles()

    df = pd.DataFrame([row[:7] for row in rows], columns=KLINE_COLUMNS)

    for col in ["open", "high", "low", "close", "volume"]:
        df[col] = df[col].astype(float)
    for col in ["open_time", "close_time"]:
        df[col] = df[col].astype("int64")

    df = df.drop_duplicates(subset=["close_time"])
    df = df.sort_values("close_time").reset_index(drop=True)
    df["date"] = pd.to_datetime(df["close_time"], unit="ms", utc=True).dt.strftime("%Y-%m-%d")
    return df


def parse_funding(rows: list) -> pd.DataFrame:
    """Turn raw Binance funding prints into a chronological DataFrame."""
    if not rows:
        return empty_funding()

    df = pd.DataFrame(rows)
    df["funding_rate"] = df["fundingRate"].astype(float)
    df["timestamp"] = df["fundingTime"].astype("int64")
    df = df[FUNDING_COLUMNS]
    df = df.drop_duplicates(subset=["timestamp"])
    df = df.sort_values("timestamp").reset_index(drop=True)
    return df


class MarketDataGateway:
    """
    Fetches per-asset candles and funding history with relay fallback and a
    per-run cache.

    Use as an async context manager, or call ``close()`` when done.
    """

    def __init__(
        self,
        config: Optional[DataSourceConfig] = None,
        cache: Optional[RunCache] = None,
    ):
        self.config = config or DataSourceConfig()
        self.cache = cache if cache is not None else RunCache()
        self.session: Optional[aiohttp.ClientSession] = None
        logger.info(
            f"Initialized MarketDataGateway spot={self.config.spot_url} "
            f"futures={self.config.futures_url}"
        )

    async def __aenter__(self) -> "MarketDataGateway":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self.session = aiohttp.ClientSession(timeout=timeout)
            logger.debug(f"Created new aiohttp session with {self.config.timeout_seconds}s timeout")
        return self.session

    async def close(self):
        """Close the session."""
        if self.session and not self.session.closed:
            await self.session.close()

    def clear_cache(self) -> None:
        self.cache.clear()

    def pair(self, symbol: str) -> str:
        return f"{symbol.upper()}{self.config.quote_asset}"

    def relay_url(self, url: str) -> str:
        return f"{self.config.proxy_url}{quote(url, safe='')}"

    async def _request_json(self, url: str) -> Any:
        """Single GET attempt. Raises on network errors, non-200 status or bad JSON."""
        session = await self._get_session()
        async with session.get(url) as response:
            if response.status != 200:
                error_text = await response.text()
                raise aiohttp.ClientError(f"HTTP {response.status}: {error_text[:200]}")
            # Relays often answer with text/plain
            return await response.json(content_type=None)

    async def fetch_json(self, url: str) -> Optional[Any]:
        """
        GET ``url`` directly, then once through the relay.

        Returns the decoded payload, or None when both attempts fail.
        """
        try:
            return await self._request_json(url)
        except Exception as e:
            logger.debug(f"Direct fetch failed for {url}: {type(e).__name__}: {e}")

        try:
            return await self._request_json(self.relay_url(url))
        except Exception as e:
            logger.warning(f"Failed to fetch {url} via relay: {type(e).__name__}: {e}")
            return None

    async def fetch_candles(
        self,
        symbol: str,
        interval: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> pd.DataFrame:
        """
        Fetch OHLCV candles for one asset.

        Args:
            symbol: Base asset (e.g. 'BTC'); the quote asset is appended
            interval: Kline interval (default from config, '1d')
            limit: Number of candles (default from config, 1000)

        Returns:
            DataFrame with columns open_time, open, high, low, close, volume,
            close_time, date. Empty when the asset is unavailable.
        """
        interval = interval or self.config.interval
        limit = limit or self.config.candle_limit
        key = (symbol, interval, limit)
        if key in self.cache.candles:
            return self.cache.candles[key]

        params = urlencode({"symbol": self.pair(symbol), "interval": interval, "limit": limit})
        url = f"{self.config.spot_url}/api/v3/klines?{params}"
        data = await self.fetch_json(url)

        if not isinstance(data, list):
            logger.debug(f"No candle data for {symbol}")
            return empty_candles()

        try:
            df = parse_klines(data)
        except Exception as e:
            logger.warning(f"Malformed kline payload for {symbol}: {type(e).__name__}: {e}")
            return empty_candles()

        if not df.empty:
            self.cache.candles[key] = df
        logger.debug(f"Fetched {len(df)} candles for {symbol} {interval}")
        return df

    async def fetch_funding(self, symbol: str) -> pd.DataFrame:
        """
        Fetch perpetual funding-rate history for one asset.

        Returns:
            DataFrame with columns symbol, funding_rate, timestamp. Empty when
            the asset is unavailable or has no perpetual market.
        """
        if symbol in self.cache.funding:
            return self.cache.funding[symbol]

        params = urlencode({"symbol": self.pair(symbol), "limit": self.config.funding_limit})
        url = f"{self.config.futures_url}/fapi/v1/fundingRate?{params}"
        data = await self.fetch_json(url)

        if not isinstance(data, list):
            logger.debug(f"No funding data for {symbol}")
            return empty_funding()

        try:
            df = parse_funding(data)
        except Exception as e:
            logger.warning(f"Malformed funding payload for {symbol}: {type(e).__name__}: {e}")
            return empty_funding()

        if not df.empty:
            self.cache.funding[symbol] = df
        logger.debug(f"Fetched {len(df)} funding rates for {symbol}")
        return df

    async def fetch_all_candles(self, symbols) -> Dict[str, pd.DataFrame]:
        """Fetch candles for every symbol concurrently."""
        results = await asyncio.gather(*[self.fetch_candles(s) for s in symbols])
        return dict(zip(symbols, results))

    async def fetch_all_funding(self, symbols) -> Dict[str, pd.DataFrame]:
        """Fetch funding history for every symbol concurrently."""
        results = await asyncio.gather(*[self.fetch_funding(s) for s in symbols])
        return dict(zip(symbols, results))
