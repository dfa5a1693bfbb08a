"""Candle loading from local CSV or JSON files.

CSV files are read with pandas and need ``open``, ``high``, ``low`` and
``close`` columns plus a ``timestamp`` (or ``time``) column; ``volume`` is
optional. JSON files hold a list of candle objects, or an object with a
``candles`` list (the shape of a backtest request body).
"""

from __future__ import annotations

import logging
from pathlib import Path

import orjson
import pandas as pd

from core.models.candle import Candle

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("open", "high", "low", "close")


def load_csv(path: Path) -> list[Candle]:
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]

    if "timestamp" not in df.columns and "time" in df.columns:
        df = df.rename(columns={"time": "timestamp"})
    missing = [c for c in ("timestamp", *REQUIRED_COLUMNS) if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {', '.join(missing)}")

    if "volume" in df.columns:
        df["volume"] = df["volume"].fillna(0.0).astype(float)
    df = df.dropna(subset=list(REQUIRED_COLUMNS))
    df[list(REQUIRED_COLUMNS)] = df[list(REQUIRED_COLUMNS)].astype(float)

    return [Candle.model_validate(row) for row in df.to_dict("records")]


def load_json(path: Path) -> list[Candle]:
    data = orjson.loads(path.read_bytes())
    if isinstance(data, dict):
        data = data.get("candles", [])
    return [Candle.model_validate(item) for item in data]


def load_candles(path: str | Path) -> list[Candle]:
    """Load candles from ``path`` based on its suffix (.csv or .json).

    Raises:
        ValueError: For unsupported suffixes or missing columns.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        candles = load_csv(path)
    elif suffix == ".json":
        candles = load_json(path)
    else:
        raise ValueError(f"Unsupported candle file type: {path.suffix}")

    logger.info(f"Loaded {len(candles):,} candles from {path}")
    return candles
