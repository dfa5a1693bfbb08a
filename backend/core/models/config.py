"""Strategy configuration models."""

from typing import Any

from pydantic import Field

from core.models.base import WireModel


class StrategyConfig(WireModel):
    """A configured strategy instance as supplied by the profile store.

    ``name`` is the strategy identifier (for example ``"MA Cross"`` or
    ``"ma-cross"``); it is resolved through the strategy alias table.
    """

    id: str = ""
    name: str
    symbol: str
    timeframe: str
    enabled: bool = True
    params: dict[str, Any] = Field(default_factory=dict)
