"""Strategy registry for discovering and instantiating strategies.

Strategy identifiers form a closed set (``StrategyKind``). Free-form names
coming from configuration ("MA Cross", "ma-cross", "rsi_bands") are resolved
through ``resolve_strategy_kind``; an unrecognised name is an error unless
the caller passes an explicit default.

Usage:
    @register_strategy(StrategyKind.MA_CROSS)
    class MaCrossStrategy:
        ...

    strategy = create_strategy("MA Cross")
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class StrategyKind(str, Enum):
    """Every strategy variant the engine knows about."""

    MA_CROSS = "ma_cross"
    RSI_BANDS = "rsi_bands"
    SCALPER = "scalper"


class UnknownStrategyError(KeyError):
    """Raised when a strategy identifier does not name a known variant."""


# strategy kind -> strategy class
_REGISTRY: dict[StrategyKind, type] = {}


def _normalize(identifier: str) -> str:
    return re.sub(r"[\s\-]+", "_", identifier.strip().lower())


def resolve_strategy_kind(
    identifier: str | StrategyKind,
    default: StrategyKind | None = None,
) -> StrategyKind:
    """Resolve a configured strategy name to a ``StrategyKind``.

    Args:
        identifier: Name such as "MA Cross", "ma-cross" or "ma_cross".
        default: Kind to use when the name is not recognised. When None,
            an unknown name raises.

    Raises:
        UnknownStrategyError: If the name is unknown and no default is given.
    """
    if isinstance(identifier, StrategyKind):
        return identifier
    try:
        return StrategyKind(_normalize(identifier))
    except ValueError:
        if default is not None:
            logger.warning(
                "Unknown strategy '%s', using explicit default '%s'",
                identifier,
                default.value,
            )
            return default
        available = ", ".join(k.value for k in StrategyKind)
        raise UnknownStrategyError(
            f"Unknown strategy '{identifier}'. Available: {available}"
        ) from None


def register_strategy(kind: StrategyKind):
    """Decorator to register a strategy class for a given kind.

    Raises:
        ValueError: If the kind is already registered.
    """

    def decorator(cls):
        if kind in _REGISTRY:
            raise ValueError(
                f"Strategy '{kind.value}' is already registered by {_REGISTRY[kind].__name__}"
            )
        _REGISTRY[kind] = cls
        logger.debug("Registered strategy: %s -> %s", kind.value, cls.__name__)
        return cls

    return decorator


def get_strategy_class(identifier: str | StrategyKind) -> type:
    """Get the strategy class by name or kind (without instantiating).

    Raises:
        UnknownStrategyError: If the identifier is unknown or unregistered.
    """
    kind = resolve_strategy_kind(identifier)
    cls = _REGISTRY.get(kind)
    if cls is None:
        raise UnknownStrategyError(f"Strategy '{kind.value}' has no registered implementation")
    return cls


def create_strategy(identifier: str | StrategyKind, **kwargs: Any):
    """Create a strategy instance by name or kind."""
    return get_strategy_class(identifier)(**kwargs)


def list_strategies() -> list[str]:
    """Return a sorted list of registered strategy names."""
    return sorted(kind.value for kind in _REGISTRY)
