"""Broker adapter contract.

Adapters translate an approved ``Order`` into venue-specific calls; they
live outside the core. Broker kinds form a closed set, and kinds without a
real adapter raise instead of borrowing another broker's.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from core.models.base import FrozenWireModel
from core.models.risk import Order

logger = logging.getLogger(__name__)


class BrokerType(str, Enum):
    MT5 = "mt5"
    MT4 = "mt4"
    CTRADER = "ctrader"
    BINANCE = "binance"
    BYBIT = "bybit"
    OKX = "okx"
    DERIV = "deriv"


# Broker kinds with a real adapter. cTrader and OKX are placeholders.
SUPPORTED_BROKERS = frozenset(
    {BrokerType.MT5, BrokerType.MT4, BrokerType.BINANCE, BrokerType.BYBIT, BrokerType.DERIV}
)


class UnsupportedBrokerError(ValueError):
    """Raised for unknown broker names and placeholder broker kinds."""


def resolve_broker_type(name: str | BrokerType) -> BrokerType:
    """Map a configured broker name to a supported ``BrokerType``.

    Raises:
        UnsupportedBrokerError: If the name is unknown or has no adapter.
    """
    try:
        broker = BrokerType(name.strip().lower() if isinstance(name, str) else name)
    except ValueError:
        raise UnsupportedBrokerError(f"Unknown broker type '{name}'") from None
    if broker not in SUPPORTED_BROKERS:
        logger.warning(f"Broker type '{broker.value}' has no adapter")
        raise UnsupportedBrokerError(f"Broker type '{broker.value}' is not supported yet")
    return broker


class BrokerResult(FrozenWireModel):
    """Outcome of submitting an order to a broker."""

    success: bool
    order_id: str | None = None
    error: str | None = None


@runtime_checkable
class BrokerAdapter(Protocol):
    """Interface every broker adapter implements."""

    @property
    def broker_type(self) -> BrokerType:
        ...

    async def submit(self, order: Order) -> BrokerResult:
        """Send ``order`` to the venue."""
        ...
