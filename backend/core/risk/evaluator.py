"""Risk evaluation: gate a signal and size the resulting order.

Gates run in a fixed order and the first failure short-circuits:

1. kill switch (external halt)
2. session filter
3. hard stop-loss requirement
4. max concurrent trades
5. max trades per day
6. daily drawdown (may warn)
7. weekly drawdown (may warn)
8. spread filter
9. duplicate position
10. position sizing and margin

Rejections are returned as ``approved=False`` results, never raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from core.control import KillSwitch
from core.models.account import AccountInfo, DailyStats, Position
from core.models.risk import Order, RiskCheckResult, RiskModifications, RiskSettings
from core.models.signal import Signal
from core.risk import checks
from core.risk.sizing import (
    DEFAULT_LEVERAGE,
    calculate_position_size,
    estimate_required_margin,
    stop_target_prices,
)
from core.symbols import PipTable

logger = logging.getLogger(__name__)

# Used when the signal has no stop and none is required.
DEFAULT_SL_PIPS = 20.0
# Target = stop * this when the signal has no target.
DEFAULT_REWARD_RATIO = 2.0


def _modifications(settings: RiskSettings) -> RiskModifications | None:
    if not settings.auto_breakeven and not settings.trailing_stop:
        return None
    return RiskModifications(
        auto_breakeven=True if settings.auto_breakeven else None,
        auto_breakeven_pips=settings.auto_breakeven_pips if settings.auto_breakeven else None,
        trailing_stop=settings.trailing_stop_pips if settings.trailing_stop else None,
    )


def evaluate_risk(
    signal: Signal,
    account: AccountInfo,
    positions: Sequence[Position],
    settings: RiskSettings,
    daily_stats: DailyStats,
    current_price: float,
    current_spread: float,
    now: datetime | None = None,
    kill_switch: KillSwitch | None = None,
    pip_table: PipTable = PipTable.V2,
    leverage: float = DEFAULT_LEVERAGE,
) -> RiskCheckResult:
    """Gate ``signal`` against the account and risk settings.

    Args:
        signal: Strategy signal. Only ``open`` signals are gated and sized.
        account: Current account snapshot.
        positions: Currently open positions.
        settings: User risk settings.
        daily_stats: Day/week counters maintained by the caller.
        current_price: Price used for stop/target levels and margin.
        current_spread: Current spread in pips.
        now: Clock for the session filter (defaults to current UTC time).
        kill_switch: External halt; a tripped switch rejects every open signal.
        pip_table: Pip-value table used for sizing.
        leverage: Assumed account leverage for the margin estimate.

    Returns:
        RiskCheckResult; on approval it carries the sized Order.
    """
    if not signal.is_open:
        return RiskCheckResult(approved=True)

    warnings: list[str] = []
    now = now or datetime.now(timezone.utc)

    def reject(message: str) -> RiskCheckResult:
        logger.info(f"Risk rejected {signal.side.value} {signal.symbol}: {message}")
        return RiskCheckResult.rejected(message, warnings)

    if kill_switch is not None and kill_switch.is_tripped:
        return reject(f"Trading halted: {kill_switch.reason}")

    gates = (
        lambda: checks.check_session_filter(settings.session_filter, now),
        lambda: checks.check_hard_stop_loss(signal, settings),
        lambda: checks.check_max_concurrent_trades(positions, settings.max_concurrent_trades),
        lambda: checks.check_max_trades_per_day(daily_stats, settings.max_trades_per_day),
        lambda: checks.check_daily_drawdown(account, daily_stats, settings.max_daily_drawdown_pct),
        lambda: checks.check_weekly_drawdown(account, daily_stats, settings.max_weekly_drawdown_pct),
        lambda: checks.check_spread(current_spread, settings.spread_filter_pips),
        lambda: checks.check_duplicate_position(positions, signal.symbol, signal.side),
    )
    for gate in gates:
        result = gate()
        if not result.passed:
            return reject(result.message)
        if result.warning:
            warnings.append(result.warning)

    sl_pips = signal.sl_pips or DEFAULT_SL_PIPS
    tp_pips = signal.tp_pips or sl_pips * DEFAULT_REWARD_RATIO
    size = calculate_position_size(
        account.equity, settings.default_risk_pct, sl_pips, signal.symbol, pip_table
    )

    required_margin = estimate_required_margin(size.lots, current_price, leverage)
    margin_check = checks.check_margin(account.free_margin, required_margin)
    if not margin_check.passed:
        return reject(margin_check.message)

    if tp_pips < sl_pips:
        warnings.append(f"Risk/Reward ratio is less than 1:1 ({tp_pips / sl_pips:.2f})")

    sl_price, tp_price = stop_target_prices(
        signal.symbol, signal.side, current_price, sl_pips, tp_pips
    )
    risk_amount = round(size.risk_amount, 2)
    order = Order(
        symbol=signal.symbol,
        side=signal.side,
        volume=size.lots,
        sl_price=sl_price,
        tp_price=tp_price,
        sl_pips=sl_pips,
        tp_pips=tp_pips,
        risk_amount=risk_amount,
        reason=signal.reason,
    )

    logger.info(
        f"Risk approved: {order.side.value} {order.symbol} @ {order.volume} lots, "
        f"SL: {sl_price:.5f}, TP: {tp_price:.5f}, risk: {risk_amount:.2f}"
    )
    return RiskCheckResult(
        approved=True,
        warnings=warnings,
        adjusted_lots=size.lots,
        risk_amount=risk_amount,
        order=order,
        modifications=_modifications(settings),
    )
