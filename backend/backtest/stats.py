"""Statistics calculator for backtest results.

All metrics are derived from the closed-trade list plus the drawdown
figures tracked during the run:

- win rate = winners / total * 100 (a trade with P/L <= 0 is a loser)
- profit factor = gross win / |gross loss|; with no losing P/L it is the
  gross win itself, so the value is always finite
- Sharpe = mean(trade P/L) / population stdev(trade P/L) * sqrt(252),
  0 when the stdev is 0
- average duration in hours
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from statistics import fmean, pstdev
from typing import Iterable

from pydantic import Field

from core.models.base import FrozenWireModel
from core.models.signal import Side

logger = logging.getLogger(__name__)

TRADING_PERIODS_PER_YEAR = 252


class ExitReason(str, Enum):
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    SIGNAL = "signal"
    END_OF_DATA = "end_of_data"


class BacktestTrade(FrozenWireModel):
    """A closed simulated trade."""

    id: str
    symbol: str
    side: Side
    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    volume: float
    sl: float
    tp: float
    pnl: float
    pips: float
    exit_reason: ExitReason
    strategy: str

    @property
    def duration_hours(self) -> float:
        return (self.exit_time - self.entry_time).total_seconds() / 3600


class EquityPoint(FrozenWireModel):
    time: datetime
    equity: float


class BacktestResult(FrozenWireModel):
    """Aggregate output of one backtest run."""

    strategy: str
    symbol: str
    timeframe: str
    initial_balance: float
    final_balance: float

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    total_pnl: float = Field(default=0.0, alias="totalPnL")
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0
    sharpe_ratio: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    avg_rr: float = Field(default=0.0, alias="avgRR")
    largest_win: float = 0.0
    largest_loss: float = 0.0
    avg_trade_duration: float = 0.0

    equity_curve: list[EquityPoint] = Field(default_factory=list)
    trades: list[BacktestTrade] = Field(default_factory=list)


@dataclass
class DrawdownTracker:
    """Running peak equity and the deepest decline from it."""

    peak: float
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0

    def update(self, equity: float) -> float:
        """Record an equity observation and return the current drawdown %."""
        self.peak = max(self.peak, equity)
        drawdown = self.peak - equity
        pct = drawdown / self.peak * 100 if self.peak > 0 else 0.0
        self.max_drawdown = max(self.max_drawdown, drawdown)
        self.max_drawdown_pct = max(self.max_drawdown_pct, pct)
        return pct


def max_drawdown_pct(equities: Iterable[float]) -> float:
    """Maximum peak-to-trough decline (%) over an equity sequence."""
    tracker: DrawdownTracker | None = None
    for equity in equities:
        if tracker is None:
            tracker = DrawdownTracker(peak=equity)
        tracker.update(equity)
    return tracker.max_drawdown_pct if tracker else 0.0


class StatisticsCalculator:
    """Calculate backtest statistics from a finished run."""

    def calculate(
        self,
        *,
        strategy: str,
        symbol: str,
        timeframe: str,
        initial_balance: float,
        final_balance: float,
        trades: list[BacktestTrade],
        equity_curve: list[EquityPoint],
        drawdown: DrawdownTracker,
    ) -> BacktestResult:
        fields: dict = {
            "strategy": strategy,
            "symbol": symbol,
            "timeframe": timeframe,
            "initial_balance": initial_balance,
            "final_balance": final_balance,
            "total_pnl": final_balance - initial_balance,
            "max_drawdown": drawdown.max_drawdown,
            "max_drawdown_pct": drawdown.max_drawdown_pct,
            "equity_curve": equity_curve,
            "trades": trades,
        }
        self._calc_overall(trades, fields)
        self._calc_sharpe(trades, fields)
        self._calc_duration(trades, fields)
        return BacktestResult(**fields)

    def _calc_overall(self, trades: list[BacktestTrade], fields: dict) -> None:
        wins = [t.pnl for t in trades if t.pnl > 0]
        losses = [t.pnl for t in trades if t.pnl <= 0]

        gross_win = sum(wins)
        gross_loss = abs(sum(losses))
        avg_win = gross_win / len(wins) if wins else 0.0
        avg_loss = gross_loss / len(losses) if losses else 0.0

        fields.update(
            total_trades=len(trades),
            winning_trades=len(wins),
            losing_trades=len(losses),
            win_rate=len(wins) / len(trades) * 100 if trades else 0.0,
            profit_factor=gross_win / gross_loss if gross_loss > 0 else gross_win,
            avg_win=avg_win,
            avg_loss=avg_loss,
            avg_rr=avg_win / avg_loss if avg_loss > 0 else 0.0,
            largest_win=max(wins) if wins else 0.0,
            largest_loss=min(losses) if losses else 0.0,
        )

    def _calc_sharpe(self, trades: list[BacktestTrade], fields: dict) -> None:
        returns = [t.pnl for t in trades]
        if len(returns) < 2:
            fields["sharpe_ratio"] = 0.0
            return
        std = pstdev(returns)
        fields["sharpe_ratio"] = (
            fmean(returns) / std * math.sqrt(TRADING_PERIODS_PER_YEAR) if std > 0 else 0.0
        )

    def _calc_duration(self, trades: list[BacktestTrade], fields: dict) -> None:
        fields["avg_trade_duration"] = (
            fmean(t.duration_hours for t in trades) if trades else 0.0
        )
