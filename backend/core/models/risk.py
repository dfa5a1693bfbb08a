"""Risk settings, orders and risk evaluation results."""

from pydantic import Field

from core.models.base import FrozenWireModel, WireModel
from core.models.signal import Side


class SessionFilter(FrozenWireModel):
    """Which trading sessions are allowed, and weekend/news blocking."""

    enabled: bool = False
    allow_london: bool = True
    allow_new_york: bool = True
    allow_tokyo: bool = True
    allow_sydney: bool = True
    block_weekends: bool = True
    block_news_events: bool = False


class RiskSettings(FrozenWireModel):
    """User risk profile. If ``hard_stop_loss`` is set every open signal
    must carry a stop distance."""

    max_daily_drawdown_pct: float = 5.0
    max_weekly_drawdown_pct: float = 10.0
    default_risk_pct: float = 1.0
    max_concurrent_trades: int = 5
    max_trades_per_day: int = 10
    spread_filter_pips: float = 3.0
    news_filter_minutes: int = 30
    hard_stop_loss: bool = True
    auto_breakeven: bool = False
    auto_breakeven_pips: float = 10.0
    trailing_stop: bool = False
    trailing_stop_pips: float = 15.0
    session_filter: SessionFilter = Field(default_factory=SessionFilter)


class Order(FrozenWireModel):
    """A sized, gated trade request ready for a broker adapter."""

    symbol: str
    side: Side
    volume: float
    sl_price: float
    tp_price: float
    sl_pips: float
    tp_pips: float
    risk_amount: float
    reason: str = ""


class RiskModifications(FrozenWireModel):
    """Position management the execution side applies on later ticks."""

    auto_breakeven: bool | None = None
    auto_breakeven_pips: float | None = None
    trailing_stop: float | None = None


class RiskCheckResult(WireModel):
    """Outcome of a risk evaluation."""

    approved: bool
    reason: str | None = None
    warnings: list[str] = Field(default_factory=list)
    adjusted_lots: float | None = None
    risk_amount: float | None = None
    order: Order | None = None
    modifications: RiskModifications | None = None
    error: str | None = None

    @classmethod
    def rejected(cls, reason: str, warnings: list[str] | None = None) -> "RiskCheckResult":
        return cls(approved=False, reason=reason, warnings=list(warnings or []))
