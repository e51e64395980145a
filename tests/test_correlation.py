"""Tests for cryptoquant/metrics/correlation.py"""

import numpy as np
import pytest

from cryptoquant.metrics.correlation import (
    average_alt_returns,
    process_correlation_data,
    returns_by_date,
)

from conftest import DAY_MS, START_MS, make_candles, random_walk


@pytest.fixture
def klines_map():
    return {
        "BTC": make_candles(random_walk(200, seed=1)),
        "ETH": make_candles(random_walk(200, seed=2)),
        "SOL": make_candles(random_walk(200, seed=3)),
    }


class TestReturnsByDate:
    def test_indexed_by_close_date(self):
        series = returns_by_date(make_candles([100.0, 110.0, 99.0]))
        assert list(series.index) == ["2020-01-02", "2020-01-03"]
        assert series.iloc[0] == pytest.approx(np.log(1.1))

    def test_single_candle_has_no_returns(self):
        assert returns_by_date(make_candles([100.0])).empty


class TestCorrelationMatrix:
    def test_reference_missing_gives_empty_output(self, klines_map):
        del klines_map["BTC"]
        data = process_correlation_data(["ETH", "SOL"], klines_map, reference="BTC")
        assert data.matrix.assets == []
        assert data.matrix.matrix == []
        assert data.history == []

    def test_diagonal_exactly_one_and_symmetric(self, klines_map):
        data = process_correlation_data(["BTC", "ETH", "SOL"], klines_map, reference="BTC")
        matrix = data.matrix.matrix
        assert data.matrix.assets == ["BTC", "ETH", "SOL"]
        for i in range(3):
            assert matrix[i][i] == 1
            for j in range(3):
                assert matrix[i][j] == matrix[j][i]
                assert -1.0 <= matrix[i][j] <= 1.0

    def test_asset_missing_a_date_is_excluded(self, klines_map):
        # Listed 10 days before the end: misses 20 of the 30 anchor dates
        klines_map["NEW"] = make_candles(random_walk(10, seed=9), start=START_MS + 190 * DAY_MS)
        gapped = make_candles(random_walk(200, seed=4))
        klines_map["GAP"] = gapped.drop(index=195).reset_index(drop=True)

        data = process_correlation_data(["BTC", "ETH", "NEW", "GAP"], klines_map, reference="BTC")
        assert data.matrix.assets == ["BTC", "ETH"]

    def test_identical_returns_correlate_fully(self, klines_map):
        closes = klines_map["BTC"]["close"] * 3
        klines_map["TWIN"] = klines_map["BTC"].assign(close=closes)
        data = process_correlation_data(["BTC", "TWIN"], klines_map, reference="BTC")
        assert data.matrix.matrix[0][1] == pytest.approx(1.0)

    def test_constant_assets_fall_back_to_zero(self):
        klines_map = {
            "BTC": make_candles([100.0] * 300),
            "USDC": make_candles([1.0] * 300),
        }
        data = process_correlation_data(["BTC", "USDC"], klines_map, reference="BTC")
        assert data.matrix.matrix == [[1.0, 0.0], [0.0, 1.0]]
        assert all(p.corr30 == 0.0 for p in data.history)


class TestRollingHistory:
    def test_ninety_points_oldest_first(self, klines_map):
        data = process_correlation_data(["BTC", "ETH", "SOL"], klines_map, reference="BTC")
        history = data.history
        assert len(history) == 90
        dates = [p.date for p in history]
        assert dates == sorted(dates)
        assert dates[-1] == klines_map["BTC"]["date"].iloc[-1]

    def test_requires_ninety_prior_returns(self, klines_map):
        short = {k: v.iloc[-120:].reset_index(drop=True) for k, v in klines_map.items()}
        data = process_correlation_data(["BTC", "ETH", "SOL"], short, reference="BTC")
        # 119 returns: reportable indices 90..118
        assert len(data.history) == 29

    def test_alt_tracking_reference(self, klines_map):
        btc = klines_map["BTC"]
        alt_map = {"BTC": btc, "ALT": btc.assign(close=btc["close"] * 0.5)}
        data = process_correlation_data(["BTC", "ALT"], alt_map, reference="BTC")
        for point in data.history:
            assert point.corr10 == pytest.approx(1.0)
            assert point.corr90 == pytest.approx(1.0)

    def test_average_alt_skips_missing_dates(self):
        btc = make_candles([1.0, 2.0, 4.0])
        late = make_candles([10.0, 20.0], start=START_MS + DAY_MS)
        early = make_candles([5.0, 10.0, 10.0])
        returns = {"LATE": returns_by_date(late), "EARLY": returns_by_date(early)}
        dates = list(returns_by_date(btc).index)

        avg = average_alt_returns(["LATE", "EARLY"], returns, dates)
        # day 2: only EARLY; day 3: mean of LATE and EARLY
        assert avg.iloc[0] == pytest.approx(np.log(2))
        assert avg.iloc[1] == pytest.approx((np.log(2) + 0.0) / 2)

    def test_average_alt_without_alts_is_zero(self):
        avg = average_alt_returns([], {}, ["2020-01-02", "2020-01-03"])
        assert avg.tolist() == [0.0, 0.0]

    def test_geometric_prices_have_no_measured_correlation(self):
        closes_a = [100 * 1.01 ** i for i in range(300)]
        closes_b = [50 * 1.02 ** i for i in range(300)]
        klines_map = {"A": make_candles(closes_a), "B": make_candles(closes_b)}
        data = process_correlation_data(["A", "B"], klines_map, reference="A")

        assert data.matrix.matrix == [[1.0, 0.0], [0.0, 1.0]]
        assert len(data.history) == 90
        for point in data.history:
            assert (point.corr10, point.corr30, point.corr60, point.corr90) == (0.0, 0.0, 0.0, 0.0)
