"""Position sizing and margin estimation."""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.models.signal import Side
from core.symbols import PipTable, pip_value, pips_to_price

LOT_STEP = 0.01
MIN_LOTS = 0.01
CONTRACT_SIZE = 100_000
DEFAULT_LEVERAGE = 100


@dataclass(frozen=True)
class PositionSize:
    lots: float
    risk_amount: float
    pip_value: float


def calculate_position_size(
    equity: float,
    risk_pct: float,
    sl_pips: float,
    symbol: str,
    table: PipTable = PipTable.V2,
) -> PositionSize:
    """Lots that risk ``risk_pct`` of equity over a ``sl_pips`` stop.

    lots = equity * risk_pct / 100 / (sl_pips * pip_value), floored to the
    0.01 lot step with a 0.01 minimum. ``risk_amount`` is the amount actually
    at risk with the rounded lot size.

    Raises:
        ValueError: If ``sl_pips`` is not positive.
    """
    if sl_pips <= 0:
        raise ValueError(f"Stop distance must be positive, got {sl_pips}")

    per_lot = pip_value(symbol, 1.0, table)
    target_risk = equity * (risk_pct / 100)
    raw_lots = target_risk / (sl_pips * per_lot)
    # Guard the floor against float noise such as 0.29999999999999993.
    steps = math.floor(round(raw_lots / LOT_STEP, 9))
    lots = max(MIN_LOTS, round(steps * LOT_STEP, 2))
    return PositionSize(
        lots=lots,
        risk_amount=lots * sl_pips * per_lot,
        pip_value=per_lot,
    )


def estimate_required_margin(
    lots: float,
    price: float,
    leverage: float = DEFAULT_LEVERAGE,
) -> float:
    """Rough margin needed to open ``lots`` at ``price``."""
    return lots * price * CONTRACT_SIZE / leverage


def stop_target_prices(
    symbol: str,
    side: Side,
    entry: float,
    sl_pips: float,
    tp_pips: float,
) -> tuple[float, float]:
    """Absolute stop-loss and take-profit prices, rounded to 5 decimals."""
    sl_offset = pips_to_price(symbol, sl_pips)
    tp_offset = pips_to_price(symbol, tp_pips)
    sl = entry - side.sign * sl_offset
    tp = entry + side.sign * tp_offset
    return round(sl, 5), round(tp, 5)
