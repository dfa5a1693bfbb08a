"""Backtest configuration.

``BacktestConfig`` is the per-run request (wire model, camelCase keys).
``BacktestSettings`` holds simulator defaults loaded from environment
variables with the ``BACKTEST_`` prefix.
"""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models.base import WireModel


class BacktestConfig(WireModel):
    """Configuration for a single backtest run.

    ``spread`` and ``slippage`` are in pips of ``symbol``.
    ``start_date``/``end_date`` restrict the candle range when given.
    """

    strategy_id: str
    symbol: str
    timeframe: str = "H1"
    start_date: datetime | None = None
    end_date: datetime | None = None
    initial_balance: float = Field(default=10_000.0, gt=0)
    spread: float = Field(default=0.0, ge=0)
    slippage: float = Field(default=0.0, ge=0)
    params: dict[str, Any] = Field(default_factory=dict)


class BacktestSettings(BaseSettings):
    """Simulator defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Bars skipped before the first evaluation so indicators can settle
    warmup_bars: int = Field(default=50, ge=0)
    # Equity curve is sampled every N bars
    equity_sample_interval: int = Field(default=10, gt=0)
    # Fixed demonstration lot size
    lot_size: float = Field(default=0.1, gt=0)

    # Used when a signal carries no stop/target distance
    fallback_sl_pips: float = Field(default=20.0, gt=0)
    fallback_tp_pips: float = Field(default=40.0, gt=0)

    # Close a position still open after the last bar at that bar's close
    close_at_end: bool = True

    # Strategy used when the configured id is not recognised
    fallback_strategy: str = "ma_cross"


@lru_cache
def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    return BacktestSettings()
