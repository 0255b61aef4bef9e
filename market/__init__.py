"""Instrument catalog and market price simulation."""

from .catalog import StockCatalog
from .simulator import MarketSimulator

__all__ = ["MarketSimulator", "StockCatalog"]
