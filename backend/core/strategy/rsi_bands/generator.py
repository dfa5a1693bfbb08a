"""RSI-Bands mean-reversion strategy.

- RSI rises from below ``oversold`` to at or above it -> BUY
- RSI falls from above ``overbought`` to at or below it -> SELL

No re-entry while a same-direction position is open. In the backtest a long
is closed once RSI reaches ``overbought`` and a short once it reaches
``oversold``.
"""

import logging
from typing import Sequence

from pydantic import AliasChoices, Field, model_validator

from core.indicators import atr, is_nan, rsi
from core.models.account import Position
from core.models.candle import Candle
from core.models.signal import Side, Signal
from core.strategy.base import (
    StrategyParamsModel,
    atr_exit_levels,
    close_signal,
    open_signal,
)
from core.strategy.protocol import StrategyParams
from core.strategy.registry import StrategyKind, register_strategy

logger = logging.getLogger(__name__)

CONFIDENCE = 0.65


class RsiBandsParams(StrategyParamsModel):
    """Parameters for RSI-Bands."""

    period: int = Field(
        default=14, gt=0, validation_alias=AliasChoices("period", "rsiPeriod", "rsi_period")
    )
    overbought: float = Field(default=70.0, ge=0, le=100)
    oversold: float = Field(default=30.0, ge=0, le=100)
    atr_period: int = Field(
        default=14, gt=0, validation_alias=AliasChoices("atrPeriod", "atr_period")
    )
    atr_multiplier: float = Field(
        default=1.5, gt=0, validation_alias=AliasChoices("atrMultiplier", "atr_multiplier")
    )

    @model_validator(mode="after")
    def _check_levels(self):
        if self.oversold >= self.overbought:
            raise ValueError("oversold must be below overbought")
        return self


@register_strategy(StrategyKind.RSI_BANDS)
class RsiBandsStrategy:
    """RSI threshold re-cross strategy."""

    params_model = RsiBandsParams
    backtest_defaults: dict = {}

    @property
    def name(self) -> str:
        return StrategyKind.RSI_BANDS.value

    @property
    def version(self) -> str:
        return "1.0.0"

    def min_candles(self, params: StrategyParams) -> int:
        return RsiBandsParams.parse(params).period + 2

    def evaluate(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        position: Position | None = None,
    ) -> Signal | None:
        p = RsiBandsParams.parse(params)
        if len(candles) < p.period + 2:
            return None

        values = rsi([c.close for c in candles], p.period)
        rsi_prev, rsi_now = values[-2], values[-1]
        if is_nan(rsi_prev) or is_nan(rsi_now):
            return None

        if rsi_prev < p.oversold and rsi_now >= p.oversold:
            side = Side.BUY
            reason = f"RSI BUY: RSI({p.period}) crossed above oversold level {p.oversold:g}"
        elif rsi_prev > p.overbought and rsi_now <= p.overbought:
            side = Side.SELL
            reason = f"RSI SELL: RSI({p.period}) crossed below overbought level {p.overbought:g}"
        else:
            return None

        if position is not None and position.side == side:
            return None

        atr_value = atr(
            [c.high for c in candles],
            [c.low for c in candles],
            [c.close for c in candles],
            p.atr_period,
        )[-1]
        levels = atr_exit_levels(
            candles[-1].symbol, side, candles[-1].close, atr_value, p.atr_multiplier
        )
        logger.info(f"{reason} ({candles[-1].symbol} rsi={rsi_now:.2f})")
        return open_signal(self.name, candles, side, reason, CONFIDENCE, levels)

    def exit_signal(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        side: Side,
    ) -> Signal | None:
        p = RsiBandsParams.parse(params)
        if len(candles) < p.period + 2:
            return None

        rsi_now = rsi([c.close for c in candles], p.period)[-1]
        if is_nan(rsi_now):
            return None
        if side == Side.BUY and rsi_now >= p.overbought:
            reason = f"RSI exit: RSI({p.period}) reached overbought {p.overbought:g}"
        elif side == Side.SELL and rsi_now <= p.oversold:
            reason = f"RSI exit: RSI({p.period}) reached oversold {p.oversold:g}"
        else:
            return None
        return close_signal(self.name, candles, reason, CONFIDENCE)
