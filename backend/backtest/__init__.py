"""Backtesting system: replay a strategy over historical candles.

Fully independent of app/; only depends on core/ for business logic.

Usage:
    python -m backtest --strategy ma_cross --start 2024-01-01 --end 2024-03-31
"""

from backtest.config import BacktestConfig, BacktestSettings, get_backtest_settings
from backtest.engine import BacktestCancelled, BacktestEngine
from backtest.runner import run_backtest
from backtest.stats import BacktestResult, BacktestTrade, EquityPoint, ExitReason

__all__ = [
    "BacktestCancelled",
    "BacktestConfig",
    "BacktestEngine",
    "BacktestResult",
    "BacktestSettings",
    "BacktestTrade",
    "EquityPoint",
    "ExitReason",
    "get_backtest_settings",
    "run_backtest",
]
