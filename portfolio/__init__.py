"""Holdings, purchase lots, accounting and trade execution."""

from .accountant import DIVERSIFICATION_BONUS, PortfolioAccountant, diversification_bonus_for
from .executor import TradeExecutor
from .ledger import HoldingsLedger
from .lots import PurchaseLotTracker

__all__ = [
    "DIVERSIFICATION_BONUS",
    "HoldingsLedger",
    "PortfolioAccountant",
    "PurchaseLotTracker",
    "TradeExecutor",
    "diversification_bonus_for",
]
