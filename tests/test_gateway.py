"""
Tests for cryptoquant/data/gateway.py

Covers:
  - kline / funding payload parsing
  - direct request, single relay retry, empty result when both fail
  - per-run cache keyed by request parameters, cleared between runs
"""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from cryptoquant.data.gateway import MarketDataGateway, RunCache, parse_funding, parse_klines
from cryptoquant.utils.config import DataSourceConfig

from conftest import funding_rows, kline_rows


@pytest.fixture
def gateway():
    return MarketDataGateway(DataSourceConfig(proxy_url="https://relay.test/raw?url="))


class TestParsing:
    def test_parse_klines_converts_strings(self):
        df = parse_klines(kline_rows([100.5, 101.25], volumes=[10, 20]))
        assert list(df.columns) == [
            "open_time", "open", "high", "low", "close", "volume", "close_time", "date"
        ]
        assert df["close"].tolist() == [100.5, 101.25]
        assert df["volume"].tolist() == [10.0, 20.0]
        assert df["close"].dtype == float
        assert df["date"].tolist() == ["2020-01-01", "2020-01-02"]

    def test_parse_klines_sorts_and_dedups(self):
        rows = kline_rows([1, 2, 3])
        shuffled = [rows[2], rows[0], rows[1], rows[2]]
        df = parse_klines(shuffled)
        assert df["close"].tolist() == [1.0, 2.0, 3.0]
        assert df["close_time"].is_monotonic_increasing

    def test_parse_klines_empty(self):
        assert parse_klines([]).empty

    def test_parse_funding(self):
        df = parse_funding(funding_rows([0.0001, -0.0002]))
        assert df["funding_rate"].tolist() == [0.0001, -0.0002]
        assert list(df.columns) == ["symbol", "funding_rate", "timestamp"]


class TestTransport:
    @pytest.mark.asyncio
    async def test_direct_success_no_relay(self, gateway):
        gateway._request_json = AsyncMock(return_value=[1, 2])
        result = await gateway.fetch_json("https://api.test/x")
        assert result == [1, 2]
        gateway._request_json.assert_awaited_once_with("https://api.test/x")

    @pytest.mark.asyncio
    async def test_falls_back_to_relay_once(self, gateway):
        gateway._request_json = AsyncMock(side_effect=[aiohttp.ClientError("blocked"), ["ok"]])
        result = await gateway.fetch_json("https://api.test/x?a=1")
        assert result == ["ok"]
        assert gateway._request_json.await_count == 2
        relay_url = gateway._request_json.await_args_list[1].args[0]
        assert relay_url == "https://relay.test/raw?url=https%3A%2F%2Fapi.test%2Fx%3Fa%3D1"

    @pytest.mark.asyncio
    async def test_both_attempts_fail_returns_none(self, gateway):
        gateway._request_json = AsyncMock(side_effect=aiohttp.ClientError("down"))
        assert await gateway.fetch_json("https://api.test/x") is None
        assert gateway._request_json.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_candle_fetch_is_empty_not_raised(self, gateway):
        gateway._request_json = AsyncMock(side_effect=aiohttp.ClientError("down"))
        df = await gateway.fetch_candles("BTC")
        assert df.empty
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_non_list_payload_is_empty(self, gateway):
        gateway._request_json = AsyncMock(return_value={"code": -1121, "msg": "Invalid symbol."})
        assert (await gateway.fetch_candles("NOPE")).empty
        assert (await gateway.fetch_funding("NOPE")).empty

    @pytest.mark.asyncio
    async def test_candle_request_url(self, gateway):
        gateway._request_json = AsyncMock(return_value=kline_rows([1.0, 2.0]))
        await gateway.fetch_candles("eth", "1d", 1000)
        url = gateway._request_json.await_args.args[0]
        assert url == "https://api.binance.com/api/v3/klines?symbol=ETHUSDT&interval=1d&limit=1000"

    @pytest.mark.asyncio
    async def test_funding_request_url(self, gateway):
        gateway._request_json = AsyncMock(return_value=funding_rows([0.0001]))
        await gateway.fetch_funding("SOL")
        url = gateway._request_json.await_args.args[0]
        assert url == "https://fapi.binance.com/fapi/v1/fundingRate?symbol=SOLUSDT&limit=500"


def _mock_response(status, payload=None, text=""):
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.json = AsyncMock(return_value=payload)
    mock_resp.text = AsyncMock(return_value=text)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def _mock_session(gateway, **get_kwargs):
    """Install a stand-in session on the gateway and return its ``get`` mock."""
    gateway.session = MagicMock(closed=False)
    gateway.session.get = MagicMock(**get_kwargs)
    return gateway.session.get


class TestHttpTransport:
    @pytest.mark.asyncio
    async def test_server_error_goes_through_relay(self, gateway):
        failed = _mock_response(500, text="Internal error")
        relayed = _mock_response(200, payload=kline_rows([1.0, 2.0, 3.0]))

        mock_get = _mock_session(gateway, side_effect=[failed, relayed])
        df = await gateway.fetch_candles("BTC")

        assert df["close"].tolist() == [1.0, 2.0, 3.0]
        urls = [c.args[0] for c in mock_get.call_args_list]
        assert urls[0].startswith("https://api.binance.com/api/v3/klines?")
        assert urls[1] == gateway.relay_url(urls[0])
        failed.json.assert_not_awaited()
        # relays answer text/plain, so the body is decoded whatever the mimetype
        relayed.json.assert_awaited_once_with(content_type=None)

    @pytest.mark.asyncio
    async def test_server_error_on_both_legs_is_empty(self, gateway):
        responses = [_mock_response(500, text="down"), _mock_response(502, text="bad gateway")]

        mock_get = _mock_session(gateway, side_effect=responses)
        df = await gateway.fetch_funding("BTC")

        assert df.empty
        assert mock_get.call_count == 2
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_direct_success_skips_relay(self, gateway):
        ok = _mock_response(200, payload=funding_rows([0.0001, 0.0002]))

        mock_get = _mock_session(gateway, return_value=ok)
        df = await gateway.fetch_funding("ETH")

        assert df["funding_rate"].tolist() == [0.0001, 0.0002]
        assert mock_get.call_count == 1


class TestCache:
    @pytest.mark.asyncio
    async def test_candles_cached_per_key(self, gateway):
        gateway._request_json = AsyncMock(return_value=kline_rows([1.0, 2.0, 3.0]))
        first = await gateway.fetch_candles("BTC", "1d", 1000)
        second = await gateway.fetch_candles("BTC", "1d", 1000)
        assert first is second
        assert gateway._request_json.await_count == 1

        await gateway.fetch_candles("BTC", "1d", 500)
        assert gateway._request_json.await_count == 2

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, gateway):
        gateway._request_json = AsyncMock(return_value=funding_rows([0.0001, 0.0002]))
        await gateway.fetch_funding("BTC")
        gateway.clear_cache()
        await gateway.fetch_funding("BTC")
        assert gateway._request_json.await_count == 2

    @pytest.mark.asyncio
    async def test_fetch_all_isolates_failures(self, gateway):
        good = kline_rows([1.0, 2.0])

        async def fake_request(url):
            if "BADUSDT" in url:
                raise aiohttp.ClientError("nope")
            return good

        gateway._request_json = AsyncMock(side_effect=fake_request)
        result = await gateway.fetch_all_candles(["BTC", "BAD", "ETH"])
        assert list(result) == ["BTC", "BAD", "ETH"]
        assert result["BAD"].empty
        assert len(result["BTC"]) == 2 and len(result["ETH"]) == 2

    @pytest.mark.asyncio
    async def test_fetch_all_isolates_unparseable_payload(self, gateway):
        good = kline_rows([1.0, 2.0])
        overflowing = kline_rows([1.0, 2.0])
        overflowing[0][0] = 10 ** 30  # does not fit in int64

        async def fake_request(url):
            return overflowing if "BADUSDT" in url else good

        gateway._request_json = AsyncMock(side_effect=fake_request)
        result = await gateway.fetch_all_candles(["BTC", "BAD", "ETH"])
        assert result["BAD"].empty
        assert len(result["BTC"]) == 2 and len(result["ETH"]) == 2
        assert ("BAD", "1d", 1000) not in gateway.cache.candles

    def test_run_cache_clear(self):
        cache = RunCache()
        cache.candles[("BTC", "1d", 1000)] = object()
        cache.funding["BTC"] = object()
        assert len(cache) == 2
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_close_without_session(self, gateway):
        assert gateway.session is None

