"""Business services."""

from app.services.decision_service import DecisionService
from app.services.relay import ConnectionRegistry, RelayService

__all__ = [
    "ConnectionRegistry",
    "DecisionService",
    "RelayService",
]
