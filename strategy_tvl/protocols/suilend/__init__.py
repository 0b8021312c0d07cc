"""Suilend lending protocol reader."""
from .obligations import LendingMarketError, ObligationNotFoundError, ObligationReader

__all__ = ["LendingMarketError", "ObligationNotFoundError", "ObligationReader"]
