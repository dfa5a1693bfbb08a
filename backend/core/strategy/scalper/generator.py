"""Bollinger Band bounce scalper.

- Previous close at/below the previous lower band and current close back
  above the lower band -> BUY
- Previous close at/above the previous upper band and current close back
  below the upper band -> SELL

Target is the middle band; stop is ``multiplier`` * ATR from entry.
Exits come from stop/target only.
"""

import logging
from typing import Sequence

from pydantic import AliasChoices, Field

from core.indicators import atr, bollinger_bands, is_nan
from core.models.account import Position
from core.models.candle import Candle
from core.models.signal import Side, Signal
from core.strategy.base import (
    ExitLevels,
    StrategyParamsModel,
    effective_atr,
    open_signal,
)
from core.strategy.protocol import StrategyParams
from core.strategy.registry import StrategyKind, register_strategy
from core.symbols import price_to_pips

logger = logging.getLogger(__name__)

CONFIDENCE = 0.6


class ScalperParams(StrategyParamsModel):
    """Parameters for the band scalper."""

    bb_period: int = Field(
        default=20, gt=1, validation_alias=AliasChoices("bbPeriod", "bb_period")
    )
    bb_std_dev: float = Field(
        default=2.0, gt=0, validation_alias=AliasChoices("bbStdDev", "bb_std_dev")
    )
    atr_period: int = Field(
        default=14, gt=0, validation_alias=AliasChoices("atrPeriod", "atr_period")
    )
    multiplier: float = Field(
        default=1.5,
        gt=0,
        validation_alias=AliasChoices("multiplier", "atrMultiplier", "atr_multiplier"),
    )


@register_strategy(StrategyKind.SCALPER)
class ScalperStrategy:
    """Bollinger Band bounce scalper."""

    params_model = ScalperParams
    backtest_defaults: dict = {}

    @property
    def name(self) -> str:
        return StrategyKind.SCALPER.value

    @property
    def version(self) -> str:
        return "1.0.0"

    def min_candles(self, params: StrategyParams) -> int:
        p = ScalperParams.parse(params)
        return max(p.bb_period, p.atr_period) + 2

    def evaluate(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        position: Position | None = None,
    ) -> Signal | None:
        p = ScalperParams.parse(params)
        if len(candles) < max(p.bb_period, p.atr_period) + 2:
            return None

        closes = [c.close for c in candles]
        bands = bollinger_bands(closes, p.bb_period, p.bb_std_dev)
        price_prev, price_now = closes[-2], closes[-1]
        lower_prev, lower_now = bands.lower[-2], bands.lower[-1]
        upper_prev, upper_now = bands.upper[-2], bands.upper[-1]
        middle = bands.middle[-1]
        if any(is_nan(v) for v in (lower_prev, lower_now, upper_prev, upper_now, middle)):
            return None

        if price_prev <= lower_prev and price_now > lower_now:
            side = Side.BUY
            reason = "Scalper BUY: price bounced off lower Bollinger Band"
        elif price_prev >= upper_prev and price_now < upper_now:
            side = Side.SELL
            reason = "Scalper SELL: price bounced off upper Bollinger Band"
        else:
            return None

        if position is not None and position.side == side:
            return None

        target_distance = side.sign * (middle - price_now)
        if target_distance <= 0:
            # Middle band already behind the bounce close
            return None

        symbol = candles[-1].symbol
        atr_value = atr(
            [c.high for c in candles], [c.low for c in candles], closes, p.atr_period
        )[-1]
        stop_distance = effective_atr(atr_value) * p.multiplier
        levels = ExitLevels(
            sl_price=price_now - side.sign * stop_distance,
            tp_price=middle,
            sl_pips=round(price_to_pips(symbol, stop_distance), 1),
            tp_pips=round(price_to_pips(symbol, target_distance), 1),
        )
        logger.info(f"{reason} ({symbol} @ {price_now}, middle={middle:.5f})")
        return open_signal(self.name, candles, side, reason, CONFIDENCE, levels)

    def exit_signal(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        side: Side,
    ) -> Signal | None:
        return None
