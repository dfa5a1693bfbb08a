"""Data models shared by the strategy, risk and backtest layers."""

from core.models.account import AccountInfo, DailyStats, Position
from core.models.candle import Candle, CandleBuffer
from core.models.config import StrategyConfig
from core.models.risk import (
    Order,
    RiskCheckResult,
    RiskModifications,
    RiskSettings,
    SessionFilter,
)
from core.models.signal import Side, Signal, SignalKind

__all__ = [
    "AccountInfo",
    "Candle",
    "CandleBuffer",
    "DailyStats",
    "Order",
    "Position",
    "RiskCheckResult",
    "RiskModifications",
    "RiskSettings",
    "SessionFilter",
    "Side",
    "Signal",
    "SignalKind",
    "StrategyConfig",
]
