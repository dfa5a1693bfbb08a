"""MA-Cross strategy package.

Importing this package registers MaCrossStrategy.
"""

from core.strategy.ma_cross.generator import MaCrossParams, MaCrossStrategy

__all__ = ["MaCrossParams", "MaCrossStrategy"]
