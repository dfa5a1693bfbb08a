"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    BollingerBands,
    atr,
    bollinger_bands,
    ema,
    is_nan,
    rsi,
    sma,
    true_range,
)

__all__ = [
    "BollingerBands",
    "atr",
    "bollinger_bands",
    "ema",
    "is_nan",
    "rsi",
    "sma",
    "true_range",
]
