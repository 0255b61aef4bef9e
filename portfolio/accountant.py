"""Cash, realized profit and every derived portfolio figure.

All valuations are recomputed from the ledger, the lot tracker and live
catalog prices on each call.  Return rate is measured on total assets
(cash + stock value) against the initial capital, so it stays correct
after a position is fully liquidated.
"""

from __future__ import annotations

import logging
from typing import Callable

from market.catalog import StockCatalog
from models.errors import InvalidInputError
from models.portfolio import (
    DiversificationStatus,
    PerformerSummary,
    PortfolioSnapshot,
    PositionSnapshot,
)
from portfolio.ledger import HoldingsLedger
from portfolio.lots import PurchaseLotTracker

logger = logging.getLogger(__name__)

MAX_SECTORS = 5

# Distinct sectors held -> bonus (percent).  0 and 1 share the penalty.
DIVERSIFICATION_BONUS: dict[int, float] = {
    0: -10.0,
    1: -10.0,
    2: 5.0,
    3: 10.0,
    4: 15.0,
    5: 20.0,
}

StateListener = Callable[[PortfolioSnapshot], None]


def diversification_bonus_for(sector_count: int) -> float:
    """Bonus percentage for *sector_count* distinct sectors (capped at 5)."""
    if sector_count < 0:
        raise InvalidInputError(f"Sector count must not be negative, got {sector_count}.")
    return DIVERSIFICATION_BONUS[min(sector_count, MAX_SECTORS)]


def _pct(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


class PortfolioAccountant:
    """Owns cash and realized profit; derives valuations for one portfolio.

    Instrument prices are read from the catalog and never stored here.
    """

    def __init__(
        self,
        catalog: StockCatalog,
        ledger: HoldingsLedger,
        lots: PurchaseLotTracker,
        initial_cash: int,
    ) -> None:
        if initial_cash < 0:
            raise InvalidInputError(f"Initial cash must not be negative, got {initial_cash}.")
        self._catalog = catalog
        self._ledger = ledger
        self._lots = lots
        self._initial_cash = initial_cash
        self._cash = initial_cash
        self._realized_profit = 0
        self._max_diversified_sectors = 0
        self._has_invested = False
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Cash and realized profit
    # ------------------------------------------------------------------

    @property
    def cash(self) -> int:
        return self._cash

    @property
    def initial_cash(self) -> int:
        return self._initial_cash

    @property
    def realized_profit(self) -> int:
        return self._realized_profit

    @property
    def has_invested(self) -> bool:
        """True once any purchase has been made since the last reset."""
        return self._has_invested

    @property
    def max_diversified_sectors(self) -> int:
        return self._max_diversified_sectors

    def set_cash(self, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError(f"Cash must not be negative, got {amount}.")
        self._cash = amount

    def debit(self, amount: int) -> None:
        if amount < 0 or amount > self._cash:
            raise InvalidInputError(f"Cannot debit {amount} from cash balance {self._cash}.")
        self._cash -= amount

    def credit(self, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError(f"Cannot credit a negative amount ({amount}).")
        self._cash += amount

    def record_realized_profit(self, amount: int) -> None:
        self._realized_profit += amount
        logger.debug("Realized profit %+d (total %+d)", amount, self._realized_profit)

    def mark_invested(self) -> None:
        self._has_invested = True

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def stock_value(self) -> int:
        return sum(
            quantity * self._catalog.price_of(symbol)
            for symbol, quantity in self._ledger.all().items()
        )

    def total_asset_value(self) -> int:
        """Cash plus the market value of every held position."""
        return self._cash + self.stock_value()

    def return_rate_pct(self) -> float:
        """Total-asset return against the initial capital (0 without capital)."""
        return _pct(self.total_asset_value() - self._initial_cash, self._initial_cash)

    def unrealized_profit(self) -> int:
        return sum(p.unrealized_profit for p in self.positions())

    def cash_ratio_pct(self) -> float:
        return _pct(self._cash, self.total_asset_value())

    def average_purchase_price(self, symbol: str) -> int:
        return self._lots.weighted_average_cost(symbol)

    def positions(self) -> list[PositionSnapshot]:
        """Valuation of every held symbol, in holdings order."""
        positions = []
        for symbol, quantity in self._ledger.all().items():
            instrument = self._catalog.get(symbol)
            cost_basis = self._lots.cost_basis(symbol)
            market_value = quantity * instrument.current_price
            positions.append(
                PositionSnapshot(
                    symbol=symbol,
                    sector=instrument.sector,
                    quantity=quantity,
                    current_price=instrument.current_price,
                    average_cost=self._lots.weighted_average_cost(symbol),
                    cost_basis=cost_basis,
                    market_value=market_value,
                    unrealized_profit=market_value - cost_basis,
                    return_pct=_pct(market_value - cost_basis, cost_basis),
                )
            )
        return positions

    def best_performer(self) -> PerformerSummary | None:
        """Held symbol with the highest return on average cost, if any."""
        ranked = self._rated_positions()
        if not ranked:
            return None
        best = max(ranked, key=lambda p: p.return_pct)
        return PerformerSummary(symbol=best.symbol, return_pct=best.return_pct)

    def worst_performer(self) -> PerformerSummary | None:
        """Held symbol with the lowest return on average cost, if any."""
        ranked = self._rated_positions()
        if not ranked:
            return None
        worst = min(ranked, key=lambda p: p.return_pct)
        return PerformerSummary(symbol=worst.symbol, return_pct=worst.return_pct)

    # ------------------------------------------------------------------
    # Diversification
    # ------------------------------------------------------------------

    def distinct_sector_count(self) -> int:
        sectors = {self._catalog.get(symbol).sector for symbol in self._ledger.all()}
        return min(len(sectors), MAX_SECTORS)

    def diversification_bonus_pct(self) -> float:
        return diversification_bonus_for(self.distinct_sector_count())

    def best_diversification_bonus_pct(self) -> float:
        """Bonus for the highest sector count reached (applied to the final asset)."""
        return diversification_bonus_for(self._max_diversified_sectors)

    def track_diversification(self) -> int:
        """Raise the sector high-water mark to the current count; return the count."""
        count = self.distinct_sector_count()
        if count > self._max_diversified_sectors:
            self._max_diversified_sectors = count
            logger.info("New diversification record: %d sector(s).", count)
        return count

    def diversification_status(self) -> DiversificationStatus:
        count = self.distinct_sector_count()
        return DiversificationStatus(
            sector_count=count,
            bonus_pct=diversification_bonus_for(count),
            has_invested=self._has_invested,
            max_sector_count=self._max_diversified_sectors,
            best_bonus_pct=self.best_diversification_bonus_pct(),
        )

    # ------------------------------------------------------------------
    # Snapshots and listeners
    # ------------------------------------------------------------------

    def snapshot(self, reason: str = "") -> PortfolioSnapshot:
        positions = self.positions()
        stock_value = sum(p.market_value for p in positions)
        total = self._cash + stock_value
        return PortfolioSnapshot(
            cash=self._cash,
            positions=self._ledger.all(),
            stock_value=stock_value,
            total_asset_value=total,
            return_rate_pct=_pct(total - self._initial_cash, self._initial_cash),
            realized_profit=self._realized_profit,
            unrealized_profit=sum(p.unrealized_profit for p in positions),
            reason=reason,
        )

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        self._listeners.remove(listener)

    def revalue(self, reason: str = "") -> PortfolioSnapshot:
        """Recompute a snapshot and hand it to every state listener."""
        snapshot = self.snapshot(reason)
        logger.debug(
            "Revalued (%s): cash=%d stock=%d total=%d return=%.2f%%",
            reason or "-",
            snapshot.cash,
            snapshot.stock_value,
            snapshot.total_asset_value,
            snapshot.return_rate_pct,
        )
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear lots, holdings, realized profit and diversification progress."""
        self._lots.clear()
        self._ledger.clear()
        self._cash = self._initial_cash
        self._realized_profit = 0
        self._max_diversified_sectors = 0
        self._has_invested = False
        logger.info("Portfolio reset; cash restored to %d.", self._initial_cash)
        self.revalue("reset")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _rated_positions(self) -> list[PositionSnapshot]:
        return [p for p in self.positions() if p.cost_basis > 0]
