"""MA-Cross strategy implementation.

Trend-following crossover of two EMAs:
- Fast EMA crosses above Slow EMA -> BUY
- Fast EMA crosses below Slow EMA -> SELL

Stop = atr_multiplier * ATR from entry, target = 2x the stop distance.

Live evaluation turns a contrary crossover into a close signal when a
position is open. In the backtest, entries use the same crossover test and
an open position is closed as soon as the EMAs are ordered against it.

This module is pure business logic with no I/O dependencies.
"""

import logging
from typing import Sequence

from pydantic import AliasChoices, Field

from core.indicators import atr, ema, is_nan
from core.models.account import Position
from core.models.candle import Candle
from core.models.signal import Side, Signal
from core.strategy.base import (
    StrategyParamsModel,
    atr_exit_levels,
    close_signal,
    crossed_above,
    crossed_below,
    open_signal,
)
from core.strategy.protocol import StrategyParams
from core.strategy.registry import StrategyKind, register_strategy

logger = logging.getLogger(__name__)

CONFIDENCE = 0.7


class MaCrossParams(StrategyParamsModel):
    """Parameters for MA-Cross."""

    fast_period: int = Field(
        default=9, gt=0, validation_alias=AliasChoices("fast", "fastPeriod", "fast_period")
    )
    slow_period: int = Field(
        default=21, gt=0, validation_alias=AliasChoices("slow", "slowPeriod", "slow_period")
    )
    atr_period: int = Field(
        default=14, gt=0, validation_alias=AliasChoices("atrPeriod", "atr_period")
    )
    atr_multiplier: float = Field(
        default=1.5, gt=0, validation_alias=AliasChoices("atrMultiplier", "atr_multiplier")
    )


@register_strategy(StrategyKind.MA_CROSS)
class MaCrossStrategy:
    """EMA crossover trend-following strategy."""

    # Backtests historically ran with a 10/20 pair.
    params_model = MaCrossParams
    backtest_defaults = {"fastPeriod": 10, "slowPeriod": 20}

    @property
    def name(self) -> str:
        return StrategyKind.MA_CROSS.value

    @property
    def version(self) -> str:
        return "1.0.0"

    def min_candles(self, params: StrategyParams) -> int:
        p = MaCrossParams.parse(params)
        return p.slow_period + 2

    def _emas(self, candles: Sequence[Candle], p: MaCrossParams):
        closes = [c.close for c in candles]
        return ema(closes, p.fast_period), ema(closes, p.slow_period)

    def evaluate(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        position: Position | None = None,
    ) -> Signal | None:
        p = MaCrossParams.parse(params)
        if len(candles) < p.slow_period + 2:
            return None

        fast, slow = self._emas(candles, p)
        fast_prev, fast_now = fast[-2], fast[-1]
        slow_prev, slow_now = slow[-2], slow[-1]
        if any(is_nan(v) for v in (fast_prev, fast_now, slow_prev, slow_now)):
            return None

        if crossed_above(fast_prev, slow_prev, fast_now, slow_now):
            side = Side.BUY
        elif crossed_below(fast_prev, slow_prev, fast_now, slow_now):
            side = Side.SELL
        else:
            return None

        if position is not None:
            if position.side == side:
                return None
            logger.info(
                f"MA Cross CLOSE: {position.symbol} {position.side.value} on contrary crossover"
            )
            return close_signal(
                self.name,
                candles,
                reason=(
                    f"MA Cross CLOSE: Fast EMA({p.fast_period}) crossed "
                    f"{'above' if side == Side.BUY else 'below'} Slow EMA({p.slow_period})"
                ),
                confidence=CONFIDENCE,
                position_id=position.id,
            )

        highs = [c.high for c in candles]
        lows = [c.low for c in candles]
        closes = [c.close for c in candles]
        atr_value = atr(highs, lows, closes, p.atr_period)[-1]
        entry = candles[-1].close
        levels = atr_exit_levels(
            candles[-1].symbol, side, entry, atr_value, p.atr_multiplier
        )

        direction = "above" if side == Side.BUY else "below"
        signal = open_signal(
            self.name,
            candles,
            side,
            reason=(
                f"MA Cross {side.value.upper()}: Fast EMA({p.fast_period}) crossed "
                f"{direction} Slow EMA({p.slow_period})"
            ),
            confidence=CONFIDENCE,
            levels=levels,
        )
        logger.info(
            f"MA Cross {side.value.upper()}: {signal.symbol} @ {entry} "
            f"fast={fast_now:.5f} slow={slow_now:.5f} ATR={atr_value:.5f}"
        )
        return signal

    def exit_signal(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        side: Side,
    ) -> Signal | None:
        p = MaCrossParams.parse(params)
        if len(candles) < p.slow_period + 2:
            return None

        fast, slow = self._emas(candles, p)
        fast_now, slow_now = fast[-1], slow[-1]
        if (side == Side.BUY and fast_now < slow_now) or (
            side == Side.SELL and fast_now > slow_now
        ):
            return close_signal(
                self.name,
                candles,
                reason=f"MA Cross exit: EMA order flipped against {side.value} position",
                confidence=CONFIDENCE,
            )
        return None
