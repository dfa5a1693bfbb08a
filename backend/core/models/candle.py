"""Candle (OHLCV bar) data models."""

from datetime import datetime

from pydantic import AliasChoices, Field

from core.models.base import FrozenWireModel, WireModel


class Candle(FrozenWireModel):
    """A single closed price bar."""

    symbol: str = ""
    timeframe: str = ""
    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", "time"))
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @property
    def range_size(self) -> float:
        """Full range (high - low) of the bar."""
        return self.high - self.low


class CandleBuffer(WireModel):
    """Ordered window of recent candles for one symbol/timeframe stream.

    Candles must arrive in non-decreasing timestamp order. A candle with the
    same timestamp as the last one replaces it (a bar update); an older candle
    is ignored.
    """

    symbol: str
    timeframe: str
    candles: list[Candle] = Field(default_factory=list)
    max_size: int = 500

    def add(self, candle: Candle) -> None:
        """Add a candle, maintaining order and max size."""
        if self.candles and candle.timestamp <= self.candles[-1].timestamp:
            if candle.timestamp == self.candles[-1].timestamp:
                self.candles[-1] = candle
            return

        self.candles.append(candle)
        if len(self.candles) > self.max_size:
            self.candles = self.candles[-self.max_size :]

    def get_closes(self) -> list[float]:
        return [c.close for c in self.candles]

    def get_highs(self) -> list[float]:
        return [c.high for c in self.candles]

    def get_lows(self) -> list[float]:
        return [c.low for c in self.candles]

    def __len__(self) -> int:
        return len(self.candles)
