"""Backtest run orchestration.

Completely independent of app/. Prepares the candle series for a
``BacktestConfig`` and drives ``BacktestEngine`` over it.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Sequence

from core.control import CancelToken
from core.models.candle import Candle
from core.symbols import PipTable

from backtest.config import BacktestConfig, BacktestSettings
from backtest.engine import BacktestEngine
from backtest.stats import BacktestResult

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def prepare_candles(config: BacktestConfig, candles: Sequence[Candle]) -> list[Candle]:
    """Order candles by time, apply the configured date range and stamp the
    run's symbol/timeframe onto candles that lack them."""
    prepared = []
    for candle in sorted(candles, key=lambda c: _as_utc(c.timestamp)):
        if config.start_date is not None and _as_utc(candle.timestamp) < _as_utc(config.start_date):
            continue
        if config.end_date is not None and _as_utc(candle.timestamp) > _as_utc(config.end_date):
            continue
        if not candle.symbol or not candle.timeframe:
            candle = candle.model_copy(
                update={
                    "symbol": candle.symbol or config.symbol,
                    "timeframe": candle.timeframe or config.timeframe,
                }
            )
        prepared.append(candle)
    return prepared


def run_backtest(
    config: BacktestConfig,
    candles: Sequence[Candle],
    cancel: CancelToken | None = None,
    settings: BacktestSettings | None = None,
    pip_table: PipTable = PipTable.V2,
) -> BacktestResult:
    """Run one backtest.

    Args:
        config: Run configuration.
        candles: Historical candles for ``config.symbol``.
        cancel: Optional cooperative cancellation token, checked between bars.
        settings: Simulator defaults (environment settings when None).
        pip_table: Pip-value table for P/L conversion.

    Raises:
        BacktestCancelled: If ``cancel`` trips during the run.
    """
    start_time = time.time()
    series = prepare_candles(config, candles)
    engine = BacktestEngine(config, settings=settings, pip_table=pip_table)

    logger.info(
        f"Starting backtest: {engine.kind.value} {config.symbol} {config.timeframe} "
        f"({len(series):,} candles, balance={config.initial_balance:,.2f})"
    )
    if len(series) <= engine.settings.warmup_bars:
        logger.warning(
            f"Only {len(series)} candles for a {engine.settings.warmup_bars}-bar warm-up; "
            "no bars will be simulated"
        )

    result = engine.run(series, cancel=cancel)

    elapsed = time.time() - start_time
    logger.info(
        f"Backtest completed in {elapsed:.2f}s: {result.total_trades} trades, "
        f"win rate {result.win_rate:.1f}%, P/L {result.total_pnl:+.2f}"
    )
    return result
