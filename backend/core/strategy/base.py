"""Helpers shared by the built-in strategies."""

from __future__ import annotations

from typing import Any, NamedTuple, Sequence

from pydantic import BaseModel, ConfigDict

from core.indicators import is_nan
from core.models.candle import Candle
from core.models.signal import Side, Signal, SignalKind
from core.strategy.protocol import StrategyParams
from core.symbols import price_to_pips

# ATR used when the indicator is undefined or zero (perfectly flat bars).
MIN_ATR = 0.001


class StrategyParamsModel(BaseModel):
    """Base for typed strategy parameters; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @classmethod
    def parse(cls, params: StrategyParams | None):
        return cls.model_validate(dict(params or {}))

    @classmethod
    def merged(
        cls,
        params: StrategyParams | None,
        defaults: StrategyParams | None,
    ) -> dict[str, Any]:
        """Overlay ``params`` on ``defaults`` after alias resolution.

        Returns a dict keyed by field name, so ``{"fast": 5}`` overrides a
        default given as ``{"fastPeriod": 10}``.
        """
        base = cls.parse(defaults).model_dump()
        override = cls.parse(params)
        base.update({name: getattr(override, name) for name in override.model_fields_set})
        return base


class ExitLevels(NamedTuple):
    sl_price: float
    tp_price: float
    sl_pips: float
    tp_pips: float


def effective_atr(value: float) -> float:
    if is_nan(value) or value <= 0:
        return MIN_ATR
    return value


def _pips(symbol: str, distance: float) -> float:
    return round(price_to_pips(symbol, distance), 1)


def atr_exit_levels(
    symbol: str,
    side: Side,
    entry: float,
    atr_value: float,
    multiplier: float,
    reward_ratio: float = 2.0,
) -> ExitLevels:
    """Stop at ``multiplier * ATR`` from entry, target at ``reward_ratio`` times that."""
    stop_distance = effective_atr(atr_value) * multiplier
    target_distance = stop_distance * reward_ratio
    return ExitLevels(
        sl_price=entry - side.sign * stop_distance,
        tp_price=entry + side.sign * target_distance,
        sl_pips=_pips(symbol, stop_distance),
        tp_pips=_pips(symbol, target_distance),
    )


def signal_symbol(candles: Sequence[Candle]) -> str:
    return candles[0].symbol if candles else ""


def open_signal(
    strategy: str,
    candles: Sequence[Candle],
    side: Side,
    reason: str,
    confidence: float,
    levels: ExitLevels,
) -> Signal:
    return Signal(
        kind=SignalKind.OPEN,
        symbol=signal_symbol(candles),
        side=side,
        reason=reason,
        confidence=confidence,
        sl_pips=levels.sl_pips or None,
        tp_pips=levels.tp_pips or None,
        sl_price=levels.sl_price,
        tp_price=levels.tp_price,
        strategy=strategy,
        timestamp=candles[-1].timestamp,
    )


def close_signal(
    strategy: str,
    candles: Sequence[Candle],
    reason: str,
    confidence: float,
    position_id: str | None = None,
) -> Signal:
    return Signal(
        kind=SignalKind.CLOSE,
        symbol=signal_symbol(candles),
        reason=reason,
        confidence=confidence,
        strategy=strategy,
        position_id=position_id,
        timestamp=candles[-1].timestamp,
    )


def crossed_above(prev_a: float, prev_b: float, now_a: float, now_b: float) -> bool:
    """a was at or below b and is now strictly above it."""
    return prev_a <= prev_b and now_a > now_b


def crossed_below(prev_a: float, prev_b: float, now_a: float, now_b: float) -> bool:
    """a was at or above b and is now strictly below it."""
    return prev_a >= prev_b and now_a < now_b
