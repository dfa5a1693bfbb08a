"""Volatility-band scalper package.

Importing this package registers ScalperStrategy.
"""

from core.strategy.scalper.generator import ScalperParams, ScalperStrategy

__all__ = ["ScalperParams", "ScalperStrategy"]
