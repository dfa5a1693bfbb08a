"""Tests for wire models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from core.models import (
    AccountInfo,
    Candle,
    CandleBuffer,
    DailyStats,
    RiskCheckResult,
    RiskSettings,
    Side,
    Signal,
    SignalKind,
    StrategyConfig,
)

T0 = datetime(2024, 1, 2, tzinfo=timezone.utc)


def make_candle(i: int, close: float = 1.1) -> Candle:
    return Candle(
        symbol="EURUSD",
        timeframe="H1",
        timestamp=T0 + timedelta(hours=i),
        open=close,
        high=close + 0.001,
        low=close - 0.001,
        close=close,
    )


class TestCandle:
    def test_accepts_time_alias(self):
        candle = Candle.model_validate(
            {"time": "2024-01-02T00:00:00Z", "open": 1, "high": 2, "low": 0.5, "close": 1.5}
        )
        assert candle.timestamp == T0
        assert candle.volume == 0.0
        assert candle.is_bullish
        assert candle.range_size == pytest.approx(1.5)

    def test_is_frozen(self):
        candle = make_candle(0)
        with pytest.raises(ValidationError):
            candle.close = 2.0


class TestCandleBuffer:
    def test_keeps_order_and_max_size(self):
        buffer = CandleBuffer(symbol="EURUSD", timeframe="H1", max_size=3)
        for i in range(5):
            buffer.add(make_candle(i, 1.0 + i))

        assert len(buffer) == 3
        assert buffer.get_closes() == [3.0, 4.0, 5.0]

    def test_same_timestamp_replaces_last(self):
        buffer = CandleBuffer(symbol="EURUSD", timeframe="H1")
        buffer.add(make_candle(0, 1.0))
        buffer.add(make_candle(0, 1.5))

        assert buffer.get_closes() == [1.5]

    def test_older_candle_ignored(self):
        buffer = CandleBuffer(symbol="EURUSD", timeframe="H1")
        buffer.add(make_candle(2, 1.0))
        buffer.add(make_candle(1, 9.0))

        assert buffer.get_closes() == [1.0]


class TestSignal:
    def test_open_requires_side(self):
        with pytest.raises(ValidationError):
            Signal(kind=SignalKind.OPEN, symbol="EURUSD", timestamp=T0)

    def test_close_must_not_have_side(self):
        with pytest.raises(ValidationError):
            Signal(kind=SignalKind.CLOSE, symbol="EURUSD", side=Side.BUY, timestamp=T0)

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            Signal(kind="open", symbol="EURUSD", side="buy", confidence=1.5, timestamp=T0)

    def test_wire_shape(self):
        signal = Signal(
            kind=SignalKind.OPEN,
            symbol="EURUSD",
            side=Side.SELL,
            sl_pips=20,
            tp_pips=40,
            timestamp=T0,
        )
        wire = signal.to_wire()

        assert wire["type"] == "open"
        assert wire["side"] == "sell"
        assert wire["slPips"] == 20
        assert "positionId" not in wire

        parsed = Signal.model_validate(wire)
        assert parsed == signal

    def test_side_helpers(self):
        assert Side.BUY.opposite is Side.SELL
        assert Side.SELL.sign == -1


class TestAccountModels:
    def test_daily_stats_aliases(self):
        stats = DailyStats.model_validate({"dayStartBalance": 10_000, "weekStartBalance": 9_000})
        assert stats.start_balance == 10_000
        assert stats.trades_opened == 0

    def test_account_camel_case(self):
        account = AccountInfo.model_validate({"balance": 1, "equity": 2, "freeMargin": 3})
        assert account.free_margin == 3
        assert account.currency == "USD"


class TestRiskModels:
    def test_settings_defaults(self):
        settings = RiskSettings()
        assert settings.hard_stop_loss
        assert not settings.session_filter.enabled
        assert settings.max_concurrent_trades == 5

    def test_settings_from_camel_case(self):
        settings = RiskSettings.model_validate(
            {"maxDailyDrawdownPct": 3, "sessionFilter": {"enabled": True, "allowTokyo": False}}
        )
        assert settings.max_daily_drawdown_pct == 3
        assert not settings.session_filter.allow_tokyo

    def test_rejected_result(self):
        result = RiskCheckResult.rejected("nope", ["careful"])
        assert result.to_wire() == {"approved": False, "reason": "nope", "warnings": ["careful"]}


class TestStrategyConfig:
    def test_defaults(self):
        config = StrategyConfig(name="MA Cross", symbol="EURUSD", timeframe="H1")
        assert config.enabled
        assert config.params == {}
