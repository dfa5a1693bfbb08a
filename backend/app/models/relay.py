"""Live relay wire messages.

Every inbound message is ``{"type": ..., "payload": {...}}``; the ``type``
field selects the payload schema. Unknown types and malformed payloads
fail validation at the boundary.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from core.models.account import AccountInfo
from core.models.base import WireModel
from core.models.candle import Candle
from core.models.signal import Side


class AuthPayload(WireModel):
    api_key: str = ""
    account_id: str | None = None


class TickPayload(WireModel):
    symbol: str
    bid: float
    ask: float
    spread: float | None = None
    time: datetime | None = None


class OrderRequestPayload(WireModel):
    symbol: str
    side: Side
    volume: float = Field(gt=0)
    sl: float | None = None
    tp: float | None = None
    comment: str | None = None
    # Assigned by the relay before forwarding
    correlation_id: str | None = None


class OrderResultPayload(WireModel):
    success: bool
    order_id: str | None = None
    error: str | None = None
    correlation_id: str | None = None


class SubscribePayload(WireModel):
    symbols: list[str] = Field(default_factory=list)
    timeframes: list[str] = Field(default_factory=list)


class KillSwitchPayload(WireModel):
    reason: str | None = None


class AuthMessage(WireModel):
    type: Literal["auth"]
    payload: AuthPayload = Field(default_factory=AuthPayload)


class TickMessage(WireModel):
    type: Literal["tick"]
    payload: TickPayload


class CandleMessage(WireModel):
    type: Literal["candle"]
    payload: Candle


class AccountUpdateMessage(WireModel):
    type: Literal["account_update"]
    payload: AccountInfo


class OrderUpdateMessage(WireModel):
    type: Literal["order_update"]
    payload: dict[str, Any] = Field(default_factory=dict)


class OrderRequestMessage(WireModel):
    type: Literal["order_request"]
    payload: OrderRequestPayload


class OrderResultMessage(WireModel):
    type: Literal["order_result"]
    payload: OrderResultPayload


class PingMessage(WireModel):
    type: Literal["ping"]
    payload: dict[str, Any] = Field(default_factory=dict)


class SubscribeMessage(WireModel):
    type: Literal["subscribe"]
    payload: SubscribePayload = Field(default_factory=SubscribePayload)


class StartTradingMessage(WireModel):
    type: Literal["start_trading"]
    payload: dict[str, Any] = Field(default_factory=dict)


class StopTradingMessage(WireModel):
    type: Literal["stop_trading"]
    payload: dict[str, Any] = Field(default_factory=dict)


class KillSwitchMessage(WireModel):
    type: Literal["kill_switch"]
    payload: KillSwitchPayload = Field(default_factory=KillSwitchPayload)


RelayMessage = Annotated[
    Union[
        AuthMessage,
        TickMessage,
        CandleMessage,
        AccountUpdateMessage,
        OrderUpdateMessage,
        OrderRequestMessage,
        OrderResultMessage,
        PingMessage,
        SubscribeMessage,
        StartTradingMessage,
        StopTradingMessage,
        KillSwitchMessage,
    ],
    Field(discriminator="type"),
]

relay_message_adapter: TypeAdapter[RelayMessage] = TypeAdapter(RelayMessage)


def parse_relay_message(data: Any) -> RelayMessage:
    """Validate a decoded JSON object as a relay message.

    Raises:
        pydantic.ValidationError: For unknown types or invalid payloads.
    """
    return relay_message_adapter.validate_python(data)
