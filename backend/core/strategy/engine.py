"""Live strategy evaluation over a set of configured strategies."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from pydantic import Field

from core.control import KillSwitch
from core.models.account import Position
from core.models.base import WireModel
from core.models.candle import Candle
from core.models.config import StrategyConfig
from core.models.signal import Signal
from core.strategy.registry import UnknownStrategyError, create_strategy

logger = logging.getLogger(__name__)


class StrategyEvaluation(WireModel):
    """Signals produced for one symbol/timeframe evaluation request."""

    signals: list[Signal] = Field(default_factory=list)
    evaluated: int = 0
    timestamp: datetime
    error: str | None = None


def _find_position(positions: Sequence[Position], symbol: str) -> Position | None:
    for position in positions:
        if position.symbol == symbol:
            return position
    return None


def evaluate_strategies(
    strategies: Sequence[StrategyConfig],
    candles: Sequence[Candle],
    symbol: str,
    timeframe: str,
    positions: Sequence[Position] = (),
    kill_switch: KillSwitch | None = None,
) -> StrategyEvaluation:
    """Evaluate every enabled strategy configured for ``symbol``/``timeframe``.

    Each strategy contributes at most one signal. Strategies whose name is
    not recognised are skipped with a warning.

    Args:
        strategies: Configured strategies (any symbol/timeframe).
        candles: Full candle history for the stream, oldest first.
        symbol: Stream symbol; emitted signals carry this symbol.
        timeframe: Stream timeframe.
        positions: Caller's open positions, used for close/re-entry rules.
        kill_switch: When tripped, no signals are produced.

    Returns:
        StrategyEvaluation with the signals and the enabled-strategy count.
    """
    now = datetime.now(timezone.utc)
    enabled = [s for s in strategies if s.enabled]

    if kill_switch is not None and kill_switch.is_tripped:
        logger.warning(
            "Trading halted (%s); skipping %d strategies for %s %s",
            kill_switch.reason,
            len(enabled),
            symbol,
            timeframe,
        )
        return StrategyEvaluation(evaluated=len(enabled), timestamp=now)

    position = _find_position(positions, symbol)
    signals: list[Signal] = []

    for config in enabled:
        if config.symbol != symbol or config.timeframe != timeframe:
            continue
        try:
            strategy = create_strategy(config.name)
        except UnknownStrategyError as e:
            logger.warning(f"Skipping strategy {config.id or config.name}: {e}")
            continue

        signal = strategy.evaluate(candles, config.params, position)
        if signal is None:
            continue

        signal = signal.model_copy(update={"symbol": symbol})
        signals.append(signal)
        logger.info(
            f"Signal generated: {signal.kind.value} "
            f"{signal.side.value if signal.side else ''} {symbol} - {signal.reason}"
        )

    return StrategyEvaluation(signals=signals, evaluated=len(enabled), timestamp=now)
