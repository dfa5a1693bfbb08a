"""Technical indicators for signal generation.

All functions take ordered price sequences (oldest first) and return a list
of the same length. Positions before an indicator's warm-up point hold NaN,
with the exception of EMA (see ``ema``).

Implemented with NumPy; the Wilder/EMA recurrences are inherently sequential
and are evaluated in a plain loop over the array.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Sequence

import numpy as np

NAN = float("nan")


def is_nan(value: float | None) -> bool:
    """True for None or NaN."""
    return value is None or math.isnan(value)


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values (NaN for index < period - 1)
    """
    arr = _as_array(values)
    result = np.full(len(arr), np.nan)
    if period <= 0 or len(arr) < period:
        return result.tolist()

    for i in range(period - 1, len(arr)):
        result[i] = np.mean(arr[i - period + 1 : i + 1])

    return result.tolist()


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    multiplier = 2 / (period + 1). The value at index ``period - 1`` is the
    mean of the first ``period`` observations; after that
    ``ema[i] = (price[i] - ema[i-1]) * multiplier + ema[i-1]``.

    Indices before ``period - 1`` carry the running (cumulative) mean of the
    prices seen so far instead of NaN. These warm-up values are available for
    charting but must not be used to generate signals.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input)
    """
    arr = _as_array(values)
    n = len(arr)
    if n == 0:
        return []
    if period <= 0:
        return [math.nan] * n

    seed_idx = min(period, n) - 1
    result = np.empty(n)
    result[: seed_idx + 1] = np.cumsum(arr[: seed_idx + 1]) / np.arange(1, seed_idx + 2)

    multiplier = 2.0 / (period + 1)
    for i in range(seed_idx + 1, n):
        result[i] = (arr[i] - result[i - 1]) * multiplier + result[i - 1]

    return result.tolist()


def rsi(values: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Relative Strength Index.

    Average gain and loss are taken over the trailing ``period`` price
    changes. When the average loss is zero the RSI is 100.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values in [0, 100] (NaN for index < period)
    """
    arr = _as_array(values)
    n = len(arr)
    result = np.full(n, np.nan)
    if n <= period or period <= 0:
        return result.tolist()

    changes = np.diff(arr)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    for i in range(period, n):
        # changes[k] is the move from price k to price k + 1
        avg_gain = gains[i - period : i].mean()
        avg_loss = losses[i - period : i].mean()
        if avg_loss == 0:
            result[i] = 100.0
        else:
            rs = avg_gain / avg_loss
            result[i] = 100.0 - 100.0 / (1.0 + rs)

    return result.tolist()


def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    The first bar has no previous close and uses high - low.
    """
    n = len(highs)
    if n == 0:
        return []

    result = [highs[0] - lows[0]]
    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(max(hl, hc, lc))

    return result


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> list[float]:
    """
    Calculate Average True Range (ATR) with Wilder's smoothing.

    The seed at index ``period - 1`` is the mean of the first ``period``
    true ranges; afterwards ``atr[i] = (atr[i-1] * (period - 1) + tr[i]) / period``.

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices
        period: ATR period

    Returns:
        List of ATR values (NaN for index < period - 1)
    """
    tr = _as_array(true_range(highs, lows, closes))
    result = np.full(len(tr), np.nan)
    if period <= 0 or len(tr) < period:
        return result.tolist()

    result[period - 1] = tr[:period].mean()
    for i in range(period, len(tr)):
        result[i] = (result[i - 1] * (period - 1) + tr[i]) / period

    return result.tolist()


class BollingerBands(NamedTuple):
    """Middle (SMA), upper and lower band series."""

    middle: list[float]
    upper: list[float]
    lower: list[float]


def bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBands:
    """
    Calculate Bollinger Bands.

    middle = SMA(period); upper/lower = middle +/- std_dev * population
    standard deviation of the trailing window.
    """
    arr = _as_array(values)
    n = len(arr)
    middle = sma(values, period)
    upper = np.full(n, np.nan)
    lower = np.full(n, np.nan)
    if period <= 0 or n < period:
        return BollingerBands(middle=middle, upper=upper.tolist(), lower=lower.tolist())

    for i in range(period - 1, n):
        window = arr[i - period + 1 : i + 1]
        std = np.sqrt(np.mean((window - middle[i]) ** 2))  # population
        upper[i] = middle[i] + std_dev * std
        lower[i] = middle[i] - std_dev * std

    return BollingerBands(middle=middle, upper=upper.tolist(), lower=lower.tolist())
