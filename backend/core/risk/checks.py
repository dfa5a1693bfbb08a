"""Individual risk gates.

Each check returns a ``CheckResult``; a failed check carries the rejection
message, a passing one may carry a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from core.models.account import AccountInfo, DailyStats, Position
from core.models.risk import RiskSettings, SessionFilter
from core.models.signal import Side, Signal
from core.risk.sessions import active_sessions, allowed_sessions, is_weekend

# Warn once a drawdown reaches this fraction of its limit.
WARNING_THRESHOLD = 0.8

# Free margin must cover the estimated margin times this buffer.
MARGIN_BUFFER = 1.2


@dataclass(frozen=True)
class CheckResult:
    passed: bool
    message: str | None = None
    warning: str | None = None


PASS = CheckResult(passed=True)


def check_session_filter(session_filter: SessionFilter, now: datetime) -> CheckResult:
    if not session_filter.enabled:
        return PASS

    if session_filter.block_weekends and is_weekend(now):
        return CheckResult(False, "Trading blocked: Weekend market closure")

    allowed = set(allowed_sessions(session_filter))
    if not any(s in allowed for s in active_sessions(now)):
        return CheckResult(False, "Trading blocked: Outside allowed trading sessions")

    return PASS


def check_hard_stop_loss(signal: Signal, settings: RiskSettings) -> CheckResult:
    if settings.hard_stop_loss and signal.is_open and not signal.sl_pips:
        return CheckResult(False, "Hard stop-loss required but not provided")
    return PASS


def check_max_concurrent_trades(positions: Sequence[Position], max_concurrent: int) -> CheckResult:
    if len(positions) >= max_concurrent:
        return CheckResult(
            False,
            f"Max concurrent trades ({max_concurrent}) reached: {len(positions)} open",
        )
    return PASS


def check_max_trades_per_day(daily_stats: DailyStats, max_trades: int) -> CheckResult:
    if daily_stats.trades_opened >= max_trades:
        return CheckResult(False, f"Max daily trades ({max_trades}) reached")
    return PASS


def drawdown_pct(reference_balance: float, equity: float) -> float:
    """Percentage decline of equity below a reference balance."""
    if reference_balance <= 0:
        return 0.0
    return (reference_balance - equity) / reference_balance * 100


def _check_drawdown(label: str, reference_balance: float, equity: float, limit_pct: float) -> CheckResult:
    drawdown = drawdown_pct(reference_balance, equity)
    if drawdown >= limit_pct:
        return CheckResult(
            False,
            f"{label.capitalize()} drawdown limit ({limit_pct:g}%) exceeded: {drawdown:.2f}%",
        )
    if drawdown >= limit_pct * WARNING_THRESHOLD:
        return CheckResult(True, warning=f"Approaching {label} drawdown limit: {drawdown:.2f}%")
    return PASS


def check_daily_drawdown(account: AccountInfo, daily_stats: DailyStats, limit_pct: float) -> CheckResult:
    return _check_drawdown("daily", daily_stats.start_balance, account.equity, limit_pct)


def check_weekly_drawdown(account: AccountInfo, daily_stats: DailyStats, limit_pct: float) -> CheckResult:
    return _check_drawdown("weekly", daily_stats.week_start_balance, account.equity, limit_pct)


def check_spread(current_spread: float, max_spread_pips: float) -> CheckResult:
    if current_spread > max_spread_pips:
        return CheckResult(
            False,
            f"Spread ({current_spread:g} pips) exceeds max ({max_spread_pips:g} pips)",
        )
    return PASS


def check_duplicate_position(positions: Sequence[Position], symbol: str, side: Side) -> CheckResult:
    if any(p.symbol == symbol and p.side == side for p in positions):
        return CheckResult(False, f"Duplicate {side.value} position on {symbol} already exists")
    return PASS


def check_margin(free_margin: float, required_margin: float) -> CheckResult:
    needed = required_margin * MARGIN_BUFFER
    if free_margin < needed:
        return CheckResult(
            False,
            f"Insufficient margin. Required: {needed:.2f}, Available: {free_margin:.2f}",
        )
    return PASS
