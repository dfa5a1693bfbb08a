"""Account, position and daily statistics models (read-only inputs)."""

from datetime import datetime

from pydantic import AliasChoices, Field

from core.models.base import FrozenWireModel
from core.models.signal import Side


class AccountInfo(FrozenWireModel):
    """Broker account snapshot.

    The caller keeps ``equity == balance + sum(unrealized P/L)``.
    """

    balance: float
    equity: float
    margin: float = 0.0
    free_margin: float
    currency: str = "USD"


class Position(FrozenWireModel):
    """An open position owned by the broker session."""

    id: str
    symbol: str
    side: Side
    volume: float
    open_price: float
    current_price: float = 0.0
    sl: float = 0.0
    tp: float = 0.0
    profit: float = 0.0
    open_time: datetime | None = None


class DailyStats(FrozenWireModel):
    """Per-day trading counters maintained by the caller."""

    trades_opened: int = 0
    start_balance: float = Field(
        validation_alias=AliasChoices("startBalance", "start_balance", "dayStartBalance")
    )
    week_start_balance: float
    lowest_equity: float | None = None
