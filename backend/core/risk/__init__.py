"""Risk gating and position sizing (pure functions of their inputs)."""

from core.risk.evaluator import DEFAULT_SL_PIPS, evaluate_risk
from core.risk.sizing import (
    PositionSize,
    calculate_position_size,
    estimate_required_margin,
    stop_target_prices,
)

__all__ = [
    "DEFAULT_SL_PIPS",
    "PositionSize",
    "calculate_position_size",
    "estimate_required_margin",
    "evaluate_risk",
    "stop_target_prices",
]
