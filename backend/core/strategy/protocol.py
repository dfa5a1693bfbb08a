"""Strategy protocol defining the interface all strategies must implement.

Strategies are stateless: every call receives the full candle history it
needs (oldest first, last element is the bar being evaluated) and returns at
most one ``Signal``.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from core.models.account import Position
from core.models.candle import Candle
from core.models.signal import Side, Signal

StrategyParams = Mapping[str, Any]


@runtime_checkable
class Strategy(Protocol):
    """Protocol that all trading strategies must implement."""

    # Typed parameter model (a StrategyParamsModel subclass)
    params_model: type
    # Parameter overrides applied by the backtest unless the run sets them
    backtest_defaults: StrategyParams

    @property
    def name(self) -> str:
        """Registered strategy identifier (e.g., 'ma_cross')."""
        ...

    @property
    def version(self) -> str:
        ...

    def min_candles(self, params: StrategyParams) -> int:
        """Minimum history length before the strategy can signal."""
        ...

    def evaluate(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        position: Position | None = None,
    ) -> Signal | None:
        """Evaluate the latest bar for the live engine.

        Args:
            candles: Full history up to and including the current bar.
            params: Strategy parameters (camelCase or snake_case keys).
            position: The caller's open position on this symbol, if any.

        Returns:
            An open or close Signal, or None when nothing qualifies.
        """
        ...

    def exit_signal(
        self,
        candles: Sequence[Candle],
        params: StrategyParams,
        side: Side,
    ) -> Signal | None:
        """Strategy-driven exit rule used by the backtest for an open position."""
        ...
