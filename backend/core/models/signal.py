"""Trade signal models."""

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from core.models.base import FrozenWireModel


class SignalKind(str, Enum):
    """What a signal asks the execution side to do."""

    OPEN = "open"
    CLOSE = "close"
    HOLD = "hold"


class Side(str, Enum):
    """Trade direction."""

    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY

    @property
    def sign(self) -> int:
        """+1 for buy, -1 for sell."""
        return 1 if self is Side.BUY else -1


class Signal(FrozenWireModel):
    """A single strategy decision, produced fresh on every evaluation.

    ``side`` is present exactly when ``kind`` is ``open``. Stop/target
    distances are expressed in pips; the optional price fields carry the
    absolute levels the strategy derived them from.
    """

    kind: SignalKind = Field(alias="type")
    symbol: str
    side: Side | None = None
    reason: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sl_pips: float | None = Field(default=None, ge=0)
    tp_pips: float | None = Field(default=None, ge=0)
    sl_price: float | None = None
    tp_price: float | None = None
    strategy: str | None = None
    position_id: str | None = None
    timestamp: datetime

    @model_validator(mode="after")
    def _check_side(self):
        if self.kind == SignalKind.OPEN and self.side is None:
            raise ValueError("open signals require a side")
        if self.kind != SignalKind.OPEN and self.side is not None:
            raise ValueError(f"{self.kind.value} signals must not carry a side")
        return self

    @property
    def is_open(self) -> bool:
        return self.kind == SignalKind.OPEN
