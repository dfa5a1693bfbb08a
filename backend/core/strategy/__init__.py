"""Strategy plugin system.

Public API:
- Strategy: Protocol that all strategies must implement
- StrategyKind: closed set of strategy variants
- resolve_strategy_kind: map configured names to a StrategyKind
- register_strategy / create_strategy / list_strategies / get_strategy_class
- evaluate_strategies: run configured strategies over a candle stream

Importing this package auto-registers all built-in strategies.
"""

from core.strategy.protocol import Strategy, StrategyParams
from core.strategy.registry import (
    StrategyKind,
    UnknownStrategyError,
    create_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
    resolve_strategy_kind,
)

# Import built-in strategies to trigger auto-registration
import core.strategy.ma_cross  # noqa: F401
import core.strategy.rsi_bands  # noqa: F401
import core.strategy.scalper  # noqa: F401

from core.strategy.engine import StrategyEvaluation, evaluate_strategies  # noqa: E402

__all__ = [
    "Strategy",
    "StrategyParams",
    "StrategyKind",
    "UnknownStrategyError",
    "create_strategy",
    "get_strategy_class",
    "list_strategies",
    "register_strategy",
    "resolve_strategy_kind",
    "StrategyEvaluation",
    "evaluate_strategies",
]
