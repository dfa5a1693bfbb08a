"""Synthetic candle generation for demos and CLI runs without data files.

A random walk around an EURUSD-like price with a slow monthly sine trend.
Pass ``seed`` for a reproducible series.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import numpy as np

from core.models.candle import Candle

TIMEFRAMES: dict[str, timedelta] = {
    "M1": timedelta(minutes=1),
    "M5": timedelta(minutes=5),
    "M15": timedelta(minutes=15),
    "H1": timedelta(hours=1),
    "H4": timedelta(hours=4),
    "D1": timedelta(days=1),
}
DEFAULT_TIMEFRAME = "H1"

_MONTH_SECONDS = 30 * 24 * 3600


def timeframe_delta(timeframe: str) -> timedelta:
    """Bar length for ``timeframe``; unknown timeframes fall back to H1."""
    return TIMEFRAMES.get(timeframe.upper(), TIMEFRAMES[DEFAULT_TIMEFRAME])


def generate_sample_candles(
    start: datetime,
    end: datetime,
    timeframe: str = DEFAULT_TIMEFRAME,
    seed: int | None = None,
    symbol: str = "EURUSD",
    start_price: float = 1.1,
) -> list[Candle]:
    """Generate one candle per ``timeframe`` step from ``start`` to ``end`` inclusive."""
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)

    rng = np.random.default_rng(seed)
    step = timeframe_delta(timeframe)
    candles: list[Candle] = []
    price = start_price
    ts = start

    while ts <= end:
        volatility = 0.0002 + rng.random() * 0.0008
        trend = math.sin(ts.timestamp() / _MONTH_SECONDS) * 0.0001
        change = (rng.random() - 0.5) * volatility + trend

        open_ = price
        close = open_ + change
        high = max(open_, close) + rng.random() * volatility * 0.5
        low = min(open_, close) - rng.random() * volatility * 0.5

        candles.append(
            Candle(
                symbol=symbol,
                timeframe=timeframe.upper(),
                timestamp=ts,
                open=round(open_, 5),
                high=round(high, 5),
                low=round(low, 5),
                close=round(close, 5),
                volume=float(rng.integers(100, 600)),
            )
        )
        price = close
        ts += step

    return candles
