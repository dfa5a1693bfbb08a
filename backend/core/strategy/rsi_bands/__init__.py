"""RSI-Bands strategy package.

Importing this package registers RsiBandsStrategy.
"""

from core.strategy.rsi_bands.generator import RsiBandsParams, RsiBandsStrategy

__all__ = ["RsiBandsParams", "RsiBandsStrategy"]
