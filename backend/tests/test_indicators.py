"""Tests for technical indicators."""

import math

import numpy as np
import pytest

from core.indicators import (
    atr,
    bollinger_bands,
    ema,
    is_nan,
    rsi,
    sma,
    true_range,
)


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = sma(values, 3)

        # First 2 values are undefined
        assert math.isnan(result[0])
        assert math.isnan(result[1])

        assert result[2] == pytest.approx(2.0)  # (1+2+3)/3
        assert result[3] == pytest.approx(3.0)  # (2+3+4)/3
        assert result[9] == pytest.approx(9.0)

    def test_sma_insufficient_data(self):
        result = sma([1.0, 2.0], 5)
        assert len(result) == 2
        assert all(math.isnan(v) for v in result)

    def test_sma_constant_series(self):
        result = sma([1.2345] * 30, 10)
        assert all(v == pytest.approx(1.2345) for v in result[9:])


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_seed_is_mean_of_first_period(self):
        values = [float(i) for i in range(1, 11)]
        result = ema(values, 5)

        # Seed at index 4 = (1+2+3+4+5)/5
        assert result[4] == pytest.approx(3.0)
        # multiplier = 2/6, so ema[5] = (6 - 3) / 3 + 3
        assert result[5] == pytest.approx(4.0)
        assert result[9] > result[5]

    def test_ema_warmup_is_running_mean(self):
        values = [10.0, 20.0, 30.0, 40.0, 50.0]
        result = ema(values, 5)

        assert result[0] == pytest.approx(10.0)
        assert result[1] == pytest.approx(15.0)
        assert result[2] == pytest.approx(20.0)
        assert not any(math.isnan(v) for v in result)

    def test_ema_shorter_than_period(self):
        result = ema([100.0, 101.0, 102.0], 10)
        assert result == pytest.approx([100.0, 100.5, 101.0])

    def test_ema_empty(self):
        assert ema([], 5) == []

    @pytest.mark.parametrize("period", [0, -1])
    def test_ema_non_positive_period(self, period):
        result = ema([100.0, 101.0, 102.0], period)
        assert len(result) == 3
        assert all(is_nan(v) for v in result)

    def test_ema_constant_series(self):
        result = ema([1.2345] * 40, 9)
        assert all(v == pytest.approx(1.2345) for v in result[8:])


class TestRSI:
    """Tests for RSI calculation."""

    def test_rsi_all_gains_is_100(self):
        values = [100.0 + i for i in range(20)]
        result = rsi(values, 14)

        assert all(math.isnan(v) for v in result[:14])
        assert all(v == 100.0 for v in result[14:])

    def test_rsi_all_losses_is_0(self):
        values = [100.0 - i for i in range(20)]
        result = rsi(values, 14)
        assert all(v == pytest.approx(0.0) for v in result[14:])

    def test_rsi_flat_series_is_100(self):
        # No losses at all: defined as 100, never a division by zero
        result = rsi([1.1] * 20, 14)
        assert result[-1] == 100.0

    def test_rsi_bounded(self):
        rng = np.random.default_rng(42)
        values = list(100 + np.cumsum(rng.normal(0, 1, 300)))
        result = [v for v in rsi(values, 14) if not math.isnan(v)]

        assert result
        assert all(0.0 <= v <= 100.0 for v in result)

    def test_rsi_known_value(self):
        # 13 losses and 1 gain in the trailing window
        values = [200.0 - i for i in range(20)] + [182.0]
        result = rsi(values, 14)
        assert result[20] == pytest.approx(100 - 100 / (1 + 1 / 13))

    def test_rsi_insufficient_data(self):
        result = rsi([1.0, 2.0, 3.0], 14)
        assert all(math.isnan(v) for v in result)


class TestATR:
    """Tests for True Range and ATR."""

    def test_true_range(self):
        highs = [10.0, 12.0, 11.0]
        lows = [8.0, 9.0, 7.0]
        closes = [9.0, 11.0, 8.0]
        result = true_range(highs, lows, closes)

        assert result[0] == pytest.approx(2.0)  # first bar: high - low
        assert result[1] == pytest.approx(3.0)  # max(3, |12-9|, |9-9|)
        assert result[2] == pytest.approx(4.0)  # max(4, |11-11|, |7-11|)

    def test_atr_seed_and_wilder_smoothing(self):
        ranges = [1.0, 2.0, 3.0, 4.0]
        lows = [10.0] * 4
        highs = [10.0 + r for r in ranges]
        closes = [10.0 + r / 2 for r in ranges]
        result = atr(highs, lows, closes, period=3)

        assert math.isnan(result[0])
        assert math.isnan(result[1])
        assert result[2] == pytest.approx(2.0)
        assert result[3] == pytest.approx((2.0 * 2 + 4.0) / 3)

    def test_atr_constant_range(self):
        n = 30
        result = atr([11.0] * n, [9.0] * n, [10.0] * n, period=14)
        assert all(v == pytest.approx(2.0) for v in result[13:])

    def test_atr_insufficient_data(self):
        result = atr([2.0, 3.0], [1.0, 2.0], [1.5, 2.5], period=14)
        assert all(math.isnan(v) for v in result)


class TestBollingerBands:
    def test_bands_use_population_stddev(self):
        bands = bollinger_bands([1.0, 2.0, 3.0], period=3, std_dev=2.0)

        std = math.sqrt(2 / 3)
        assert bands.middle[2] == pytest.approx(2.0)
        assert bands.upper[2] == pytest.approx(2.0 + 2 * std)
        assert bands.lower[2] == pytest.approx(2.0 - 2 * std)
        assert is_nan(bands.upper[1])

    def test_bands_collapse_on_flat_series(self):
        bands = bollinger_bands([100.0] * 25, period=20)
        assert bands.upper[-1] == bands.middle[-1] == bands.lower[-1] == 100.0

    @pytest.mark.parametrize("period", [0, -1])
    def test_bands_non_positive_period(self, period):
        bands = bollinger_bands([1.0, 2.0, 3.0], period=period)
        for series in bands:
            assert len(series) == 3
            assert all(is_nan(v) for v in series)

    def test_bands_shorter_than_period(self):
        bands = bollinger_bands([1.0, 2.0], period=5)
        assert all(is_nan(v) for v in bands.upper + bands.lower)


class TestIsNan:
    def test_is_nan(self):
        assert is_nan(None)
        assert is_nan(float("nan"))
        assert not is_nan(0.0)
