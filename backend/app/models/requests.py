"""Request bodies for the decision API."""

from pydantic import Field

from backtest.config import BacktestConfig
from core.models.account import AccountInfo, DailyStats, Position
from core.models.base import WireModel
from core.models.candle import Candle
from core.models.config import StrategyConfig
from core.models.risk import RiskSettings
from core.models.signal import Signal


class StrategyEvaluationRequest(WireModel):
    """Evaluate strategies over a candle stream.

    When ``strategies`` is omitted the configured profile is used.
    """

    strategies: list[StrategyConfig] | None = None
    candles: list[Candle]
    symbol: str
    timeframe: str
    positions: list[Position] = Field(default_factory=list)


class RiskEvaluationRequest(WireModel):
    """Gate one signal. When ``settings`` is omitted the configured profile is used."""

    signal: Signal
    account: AccountInfo
    positions: list[Position] = Field(default_factory=list)
    settings: RiskSettings | None = None
    daily_stats: DailyStats
    current_price: float = Field(gt=0)
    current_spread: float = Field(default=0.0, ge=0)


class BacktestRequest(WireModel):
    """Run a backtest; synthetic candles are generated when none are given."""

    config: BacktestConfig
    candles: list[Candle] | None = None
    seed: int | None = None
