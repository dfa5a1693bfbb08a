"""Tests for risk gating and position sizing."""

from datetime import datetime, timezone

import pytest

from core.control import KillSwitch
from core.models import (
    AccountInfo,
    DailyStats,
    Position,
    RiskSettings,
    SessionFilter,
    Side,
    Signal,
    SignalKind,
)
from core.risk import calculate_position_size, estimate_required_margin, evaluate_risk
from core.risk.sessions import SYDNEY, active_sessions, is_weekend
from core.symbols import PipTable

# Monday 2024-01-08 10:00 UTC: London and Tokyo are open
MONDAY_MORNING = datetime(2024, 1, 8, 10, tzinfo=timezone.utc)
SATURDAY = datetime(2024, 1, 13, 12, tzinfo=timezone.utc)


def make_signal(symbol="EURUSD", side=Side.BUY, sl_pips=20.0, tp_pips=40.0) -> Signal:
    return Signal(
        kind=SignalKind.OPEN,
        symbol=symbol,
        side=side,
        reason="test entry",
        confidence=0.7,
        sl_pips=sl_pips,
        tp_pips=tp_pips,
        timestamp=MONDAY_MORNING,
    )


def make_account(equity=10_000.0, free_margin=10_000.0) -> AccountInfo:
    return AccountInfo(balance=10_000.0, equity=equity, free_margin=free_margin)


def make_stats(start=10_000.0, week=10_000.0, trades=0) -> DailyStats:
    return DailyStats(trades_opened=trades, start_balance=start, week_start_balance=week)


def make_position(symbol="EURUSD", side=Side.BUY, idx=1) -> Position:
    return Position(id=f"p{idx}", symbol=symbol, side=side, volume=0.1, open_price=1.1)


def run(
    signal=None,
    account=None,
    positions=(),
    settings=None,
    stats=None,
    price=1.1,
    spread=1.0,
    **kwargs,
):
    kwargs.setdefault("now", MONDAY_MORNING)
    return evaluate_risk(
        signal or make_signal(),
        account or make_account(),
        list(positions),
        settings or RiskSettings(),
        stats or make_stats(),
        price,
        spread,
        **kwargs,
    )


class TestApproval:
    """Tests for approved signals and order construction."""

    def test_baseline_order(self):
        result = run()

        assert result.approved
        assert result.reason is None
        assert result.warnings == []
        assert result.adjusted_lots == pytest.approx(0.5)
        assert result.risk_amount == pytest.approx(100.0)

        order = result.order
        assert order.side == Side.BUY
        assert order.volume == pytest.approx(0.5)
        assert order.sl_price == pytest.approx(1.098)
        assert order.tp_price == pytest.approx(1.104)
        assert order.reason == "test entry"
        assert result.modifications is None

    def test_sell_levels_are_mirrored(self):
        order = run(signal=make_signal(side=Side.SELL)).order

        assert order.sl_price == pytest.approx(1.102)
        assert order.tp_price == pytest.approx(1.096)

    def test_non_open_signal_passes_through(self):
        close = Signal(kind=SignalKind.CLOSE, symbol="EURUSD", timestamp=MONDAY_MORNING)
        result = run(signal=close, spread=50.0)

        assert result.approved
        assert result.order is None

    def test_missing_stop_uses_default_when_not_required(self):
        settings = RiskSettings(hard_stop_loss=False)
        result = run(signal=make_signal(sl_pips=None, tp_pips=None), settings=settings)

        assert result.approved
        assert result.order.sl_pips == 20.0
        assert result.order.tp_pips == 40.0

    def test_poor_reward_ratio_warns(self):
        result = run(signal=make_signal(tp_pips=10.0))

        assert result.approved
        assert result.warnings == ["Risk/Reward ratio is less than 1:1 (0.50)"]

    def test_drawdown_warning_and_smaller_size(self):
        result = run(account=make_account(equity=9_550.0))

        assert result.approved
        assert result.warnings == ["Approaching daily drawdown limit: 4.50%"]
        assert result.adjusted_lots == pytest.approx(0.47)

    def test_pip_table_selection(self):
        account = make_account(free_margin=100_000.0)
        signal = make_signal(symbol="USDJPY")

        v2 = run(signal=signal, account=account, price=150.0)
        legacy = run(signal=signal, account=account, price=150.0, pip_table=PipTable.LEGACY)

        assert v2.adjusted_lots == pytest.approx(0.54)
        assert v2.risk_amount == pytest.approx(98.28)
        assert legacy.adjusted_lots == pytest.approx(0.5)
        assert v2.order.sl_price == pytest.approx(149.8)

    def test_modifications(self):
        settings = RiskSettings(auto_breakeven=True, trailing_stop=True)
        mods = run(settings=settings).modifications

        assert mods.auto_breakeven is True
        assert mods.auto_breakeven_pips == 10.0
        assert mods.trailing_stop == 15.0

    def test_opposite_position_is_not_duplicate(self):
        result = run(positions=[make_position(side=Side.SELL)])
        assert result.approved


class TestRejections:
    """Tests for each gate's rejection."""

    def test_kill_switch(self):
        kill_switch = KillSwitch()
        kill_switch.trip("maintenance")

        result = run(kill_switch=kill_switch)

        assert not result.approved
        assert result.reason == "Trading halted: maintenance"
        assert result.order is None

    def test_weekend(self):
        settings = RiskSettings(session_filter=SessionFilter(enabled=True))
        result = run(settings=settings, now=SATURDAY)
        assert result.reason == "Trading blocked: Weekend market closure"

    def test_outside_sessions(self):
        settings = RiskSettings(session_filter=SessionFilter(enabled=True, allow_sydney=False))
        late_monday = datetime(2024, 1, 8, 22, tzinfo=timezone.utc)

        result = run(settings=settings, now=late_monday)

        assert result.reason == "Trading blocked: Outside allowed trading sessions"

    def test_session_filter_disabled_ignores_weekend(self):
        assert run(now=SATURDAY).approved

    def test_hard_stop_required(self):
        result = run(signal=make_signal(sl_pips=None))
        assert result.reason == "Hard stop-loss required but not provided"

    def test_max_concurrent(self):
        positions = [make_position(symbol=f"SYM{i}", idx=i) for i in range(5)]
        result = run(positions=positions)
        assert result.reason == "Max concurrent trades (5) reached: 5 open"

    def test_max_trades_per_day(self):
        result = run(stats=make_stats(trades=10))
        assert result.reason == "Max daily trades (10) reached"

    def test_daily_drawdown(self):
        result = run(account=make_account(equity=9_400.0))
        assert result.reason == "Daily drawdown limit (5%) exceeded: 6.00%"

    def test_weekly_drawdown(self):
        result = run(
            account=make_account(equity=8_900.0),
            stats=make_stats(start=8_900.0, week=10_000.0),
        )
        assert result.reason == "Weekly drawdown limit (10%) exceeded: 11.00%"

    def test_spread(self):
        result = run(spread=3.5)
        assert result.reason == "Spread (3.5 pips) exceeds max (3 pips)"

    def test_duplicate_position(self):
        result = run(positions=[make_position()])
        assert result.reason == "Duplicate buy position on EURUSD already exists"

    def test_insufficient_margin(self):
        result = run(account=make_account(free_margin=500.0))
        assert result.reason == "Insufficient margin. Required: 660.00, Available: 500.00"

    def test_first_failure_wins_and_keeps_warnings(self):
        result = run(account=make_account(equity=9_550.0), spread=5.0)

        assert result.reason.startswith("Spread")
        assert result.warnings == ["Approaching daily drawdown limit: 4.50%"]

    def test_gate_order(self):
        positions = [make_position(symbol=f"SYM{i}", idx=i) for i in range(5)]
        result = run(positions=positions, spread=10.0, stats=make_stats(trades=99))
        assert result.reason.startswith("Max concurrent trades")


class TestSizing:
    def test_lots_from_risk(self):
        size = calculate_position_size(10_000, 1.0, 20, "EURUSD")

        assert size.lots == pytest.approx(0.5)
        assert size.pip_value == 10.0
        assert size.risk_amount == pytest.approx(100.0)

    def test_floor_survives_float_noise(self):
        assert calculate_position_size(3_000, 1.0, 10, "EURUSD").lots == pytest.approx(0.3)

    def test_minimum_lot(self):
        assert calculate_position_size(100, 1.0, 50, "EURUSD").lots == pytest.approx(0.01)

    def test_stop_must_be_positive(self):
        with pytest.raises(ValueError):
            calculate_position_size(10_000, 1.0, 0, "EURUSD")

    def test_margin_estimate(self):
        assert estimate_required_margin(1.0, 1.1) == pytest.approx(1_100.0)
        assert estimate_required_margin(1.0, 1.1, leverage=50) == pytest.approx(2_200.0)


class TestSessions:
    @pytest.mark.parametrize(
        "moment,expected",
        [
            (datetime(2024, 1, 12, 20, 59, tzinfo=timezone.utc), False),  # Friday
            (datetime(2024, 1, 12, 21, 0, tzinfo=timezone.utc), True),
            (datetime(2024, 1, 14, 20, 0, tzinfo=timezone.utc), True),  # Sunday
            (datetime(2024, 1, 14, 21, 0, tzinfo=timezone.utc), False),
        ],
    )
    def test_weekend_window(self, moment, expected):
        assert is_weekend(moment) is expected

    def test_active_sessions_overlap(self):
        names = [s.name for s in active_sessions(datetime(2024, 1, 8, 13, tzinfo=timezone.utc))]
        assert names == ["London", "New York"]

    def test_sydney_wraps_midnight(self):
        assert SYDNEY.contains(23)
        assert SYDNEY.contains(3)
        assert not SYDNEY.contains(12)
