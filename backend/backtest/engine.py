"""Bar-by-bar backtest simulation for a single strategy and symbol.

Processing order for each candle after the warm-up window:
1. If a position is open, check stop/target against the bar's high/low.
   When both are touched on the same bar the stop wins (pessimistic
   assumption: the intrabar path is unknown). Without a stop/target hit,
   ``exit_signal`` may close the position at the bar's close.
2. With no position, ``evaluate`` may open one. This includes a bar whose
   stop or target just closed a trade, but not a bar closed by
   ``exit_signal``.
3. Update equity, peak equity and drawdown; sample the equity curve every
   ``equity_sample_interval`` bars.

A position still open after the last candle is closed at its close unless
``close_at_end`` is disabled, in which case it is left out of the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from core.control import CancelToken
from core.models.candle import Candle
from core.models.signal import Side
from core.strategy import StrategyKind, create_strategy, resolve_strategy_kind
from core.symbols import PipTable, pip_size, pip_value

from backtest.config import BacktestConfig, BacktestSettings, get_backtest_settings
from backtest.stats import (
    BacktestResult,
    BacktestTrade,
    DrawdownTracker,
    EquityPoint,
    ExitReason,
    StatisticsCalculator,
)

logger = logging.getLogger(__name__)


class BacktestCancelled(Exception):
    """Raised when a run is cancelled between bars; no result is produced."""


@dataclass
class SimulatedPosition:
    side: Side
    entry_price: float
    entry_time: datetime
    volume: float
    sl: float
    tp: float

    def stop_hit(self, candle: Candle) -> bool:
        if self.side == Side.BUY:
            return candle.low <= self.sl
        return candle.high >= self.sl

    def target_hit(self, candle: Candle) -> bool:
        if self.side == Side.BUY:
            return candle.high >= self.tp
        return candle.low <= self.tp


class BacktestEngine:
    """Replay one strategy over a candle series.

    Args:
        config: Run configuration (strategy id, symbol, costs, params).
        settings: Simulator defaults; the cached environment settings when None.
        pip_table: Pip-value table used to convert pips to account currency.
    """

    def __init__(
        self,
        config: BacktestConfig,
        settings: BacktestSettings | None = None,
        pip_table: PipTable = PipTable.V2,
    ):
        self.config = config
        self.settings = settings or get_backtest_settings()
        self.pip_table = pip_table

        fallback = resolve_strategy_kind(self.settings.fallback_strategy)
        self.kind: StrategyKind = resolve_strategy_kind(config.strategy_id, default=fallback)
        self.strategy = create_strategy(self.kind)
        self.params = self.strategy.params_model.merged(
            config.params, self.strategy.backtest_defaults
        )

        self._pip = pip_size(config.symbol)
        self._pip_value = pip_value(config.symbol, 1.0, pip_table)
        self._trades: list[BacktestTrade] = []

    def run(self, candles: Sequence[Candle], cancel: CancelToken | None = None) -> BacktestResult:
        """Simulate the strategy over ``candles`` (oldest first).

        Raises:
            BacktestCancelled: If ``cancel`` is tripped before the run finishes.
        """
        candles = list(candles)
        balance = self.config.initial_balance
        drawdown = DrawdownTracker(peak=balance)
        equity_curve: list[EquityPoint] = []
        position: SimulatedPosition | None = None
        self._trades = []

        interval = self.settings.equity_sample_interval
        for i in range(self.settings.warmup_bars, len(candles)):
            if cancel is not None and cancel.is_tripped:
                logger.warning(
                    f"Backtest cancelled at bar {i}/{len(candles)}: {cancel.reason}"
                )
                raise BacktestCancelled(cancel.reason or "cancelled")

            candle = candles[i]
            signal_exit = False
            if position is not None:
                exit_price, reason = self._check_exit(position, candle)
                if exit_price is None:
                    signal = self.strategy.exit_signal(
                        candles[: i + 1], self.params, position.side
                    )
                    if signal is not None:
                        exit_price, reason = candle.close, ExitReason.SIGNAL
                        signal_exit = True
                if exit_price is not None:
                    balance += self._close(position, candle, exit_price, reason)
                    position = None

            # A stop/target exit frees the slot on the same bar; a signal exit does not
            if position is None and not signal_exit:
                signal = self.strategy.evaluate(candles[: i + 1], self.params)
                if signal is not None and signal.is_open:
                    position = self._open(signal.side, candle, signal.sl_pips, signal.tp_pips)

            drawdown.update(balance)
            if i % interval == 0:
                equity_curve.append(EquityPoint(time=candle.timestamp, equity=balance))

        if position is not None and self.settings.close_at_end:
            last = candles[-1]
            balance += self._close(position, last, last.close, ExitReason.END_OF_DATA)
            drawdown.update(balance)
            equity_curve.append(EquityPoint(time=last.timestamp, equity=balance))

        return StatisticsCalculator().calculate(
            strategy=self.kind.value,
            symbol=self.config.symbol,
            timeframe=self.config.timeframe,
            initial_balance=self.config.initial_balance,
            final_balance=balance,
            trades=self._trades,
            equity_curve=equity_curve,
            drawdown=drawdown,
        )

    def _check_exit(
        self, position: SimulatedPosition, candle: Candle
    ) -> tuple[float | None, ExitReason | None]:
        # Stop before target
        if position.stop_hit(candle):
            slippage = self.config.slippage * self._pip
            return position.sl - position.side.sign * slippage, ExitReason.STOP_LOSS
        if position.target_hit(candle):
            return position.tp, ExitReason.TAKE_PROFIT
        return None, None

    def _open(
        self,
        side: Side,
        candle: Candle,
        sl_pips: float | None,
        tp_pips: float | None,
    ) -> SimulatedPosition:
        costs = (self.config.spread + self.config.slippage) * self._pip
        entry = candle.close + side.sign * costs
        sl_distance = (sl_pips or self.settings.fallback_sl_pips) * self._pip
        tp_distance = (tp_pips or self.settings.fallback_tp_pips) * self._pip
        position = SimulatedPosition(
            side=side,
            entry_price=entry,
            entry_time=candle.timestamp,
            volume=self.settings.lot_size,
            sl=entry - side.sign * sl_distance,
            tp=entry + side.sign * tp_distance,
        )
        logger.debug(
            f"Open {side.value} {self.config.symbol} @ {entry:.5f} "
            f"SL={position.sl:.5f} TP={position.tp:.5f}"
        )
        return position

    def _close(
        self,
        position: SimulatedPosition,
        candle: Candle,
        exit_price: float,
        reason: ExitReason,
    ) -> float:
        pips = position.side.sign * (exit_price - position.entry_price) / self._pip
        pnl = pips * position.volume * self._pip_value
        trade = BacktestTrade(
            id=f"trade-{len(self._trades) + 1}",
            symbol=self.config.symbol,
            side=position.side,
            entry_time=position.entry_time,
            exit_time=candle.timestamp,
            entry_price=position.entry_price,
            exit_price=exit_price,
            volume=position.volume,
            sl=position.sl,
            tp=position.tp,
            pnl=pnl,
            pips=pips,
            exit_reason=reason,
            strategy=self.kind.value,
        )
        self._trades.append(trade)
        logger.debug(
            f"Close {position.side.value} {self.config.symbol} @ {exit_price:.5f} "
            f"({reason.value}): {pips:+.1f} pips, P/L {pnl:+.2f}"
        )
        return pnl
