"""API and relay wire models."""

from app.models.relay import RelayMessage, parse_relay_message
from app.models.requests import (
    BacktestRequest,
    RiskEvaluationRequest,
    StrategyEvaluationRequest,
)

__all__ = [
    "BacktestRequest",
    "RelayMessage",
    "RiskEvaluationRequest",
    "StrategyEvaluationRequest",
    "parse_relay_message",
]
