"""Per-symbol pip conventions.

Two pip-value tables exist. ``PIP_VALUES`` is the canonical one used for
position sizing; ``LEGACY_PIP_VALUES`` reflects the older risk profile
(JPY pairs at 10 instead of 9.1, different metals and CAD/CHF values).
They are intentionally not merged: ``pip_table_discrepancies`` lists the
symbols on which they disagree so the choice can be confirmed.
"""

from __future__ import annotations

from enum import Enum

DEFAULT_PIP_VALUE = 10.0

# Account-currency value of one pip for 1.0 lot.
PIP_VALUES: dict[str, float] = {
    "EURUSD": 10.0, "GBPUSD": 10.0, "AUDUSD": 10.0, "NZDUSD": 10.0,
    "USDJPY": 9.1, "EURJPY": 9.1, "GBPJPY": 9.1, "AUDJPY": 9.1,
    "USDCHF": 10.5, "EURCHF": 10.5, "GBPCHF": 10.5,
    "USDCAD": 7.5, "EURCAD": 7.5, "GBPCAD": 7.5,
    "XAUUSD": 1.0, "XAGUSD": 50.0,
    "BTCUSD": 1.0, "ETHUSD": 1.0,
}

LEGACY_PIP_VALUES: dict[str, float] = {
    "EURUSD": 10.0, "GBPUSD": 10.0, "AUDUSD": 10.0, "NZDUSD": 10.0,
    "USDCAD": 10.0, "USDCHF": 10.0,
    "USDJPY": 10.0, "EURJPY": 10.0, "GBPJPY": 10.0,
    "XAUUSD": 1.0, "XAGUSD": 0.5,
}


class PipTable(str, Enum):
    """Selectable pip-value table."""

    V2 = "v2"
    LEGACY = "legacy"


_TABLES = {
    PipTable.V2: PIP_VALUES,
    PipTable.LEGACY: LEGACY_PIP_VALUES,
}

_CRYPTO_PREFIXES = ("BTC", "ETH", "SOL", "XRP", "LTC")


def normalize_symbol(symbol: str) -> str:
    """Upper-case and strip broker suffixes such as ``EURUSD.m`` or ``EURUSD-pro``."""
    return symbol.upper().split(".")[0].split("-")[0].strip()


def is_jpy_pair(symbol: str) -> bool:
    return "JPY" in normalize_symbol(symbol)


def is_crypto(symbol: str) -> bool:
    return normalize_symbol(symbol).startswith(_CRYPTO_PREFIXES)


def pip_size(symbol: str) -> float:
    """Price increment of one pip for ``symbol``."""
    sym = normalize_symbol(symbol)
    if "JPY" in sym:
        return 0.01
    if sym.startswith("XAU"):
        return 0.1
    if sym.startswith("XAG"):
        return 0.01
    if is_crypto(sym):
        return 1.0
    return 0.0001


def pip_value(symbol: str, lots: float = 1.0, table: PipTable = PipTable.V2) -> float:
    """Account-currency value of one pip for ``lots`` lots of ``symbol``.

    Unknown symbols fall back to ``DEFAULT_PIP_VALUE`` per lot.
    """
    values = _TABLES[PipTable(table)]
    return values.get(normalize_symbol(symbol), DEFAULT_PIP_VALUE) * lots


def price_to_pips(symbol: str, distance: float) -> float:
    """Convert an absolute price distance to pips."""
    return abs(distance) / pip_size(symbol)


def pips_to_price(symbol: str, pips: float) -> float:
    """Convert a pip distance to an absolute price distance."""
    return pips * pip_size(symbol)


def pip_table_discrepancies() -> dict[str, tuple[float, float]]:
    """Symbols whose pip value differs between the two tables.

    Returns:
        Mapping of symbol -> (v2 value, legacy value). Symbols missing from
        a table are compared against ``DEFAULT_PIP_VALUE``.
    """
    result = {}
    for symbol in sorted(set(PIP_VALUES) | set(LEGACY_PIP_VALUES)):
        current = PIP_VALUES.get(symbol, DEFAULT_PIP_VALUE)
        legacy = LEGACY_PIP_VALUES.get(symbol, DEFAULT_PIP_VALUE)
        if current != legacy:
            result[symbol] = (current, legacy)
    return result
