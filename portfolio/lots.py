"""Per-symbol purchase lots with FIFO cost basis.

Average cost is always derived from the current lots, never stored.
A sale is planned once against the pre-sale lots; the same plan drives
both the realized-profit figure and the lot consumption, so the two can
never disagree.
"""

from __future__ import annotations

import logging
from datetime import datetime

from models.errors import InsufficientHoldingsError, InvalidInputError
from models.portfolio import LotConsumption, PurchaseLot, SaleOutcome

logger = logging.getLogger(__name__)


class PurchaseLotTracker:
    """Ordered purchase lots for every symbol bought and not yet fully sold."""

    def __init__(self) -> None:
        self._lots: dict[str, list[PurchaseLot]] = {}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_purchase(
        self,
        symbol: str,
        quantity: int,
        unit_price: int,
        timestamp: datetime | None = None,
    ) -> PurchaseLot:
        """Append a new lot for *symbol* and return a copy of it."""
        if quantity <= 0:
            raise InvalidInputError(f"Purchase quantity must be positive, got {quantity} for {symbol}.")
        if unit_price < 0:
            raise InvalidInputError(f"Unit price must not be negative, got {unit_price} for {symbol}.")

        lot = PurchaseLot(
            quantity=quantity,
            unit_price=unit_price,
            timestamp=timestamp or datetime.now(),
        )
        self._lots.setdefault(symbol, []).append(lot)
        logger.debug(
            "Lot recorded: %s %d @ %d (average cost now %d)",
            symbol,
            quantity,
            unit_price,
            self.weighted_average_cost(symbol),
        )
        return lot.model_copy()

    def record_sale(self, symbol: str, quantity: int, sale_price: int | None = None) -> SaleOutcome:
        """Consume *quantity* shares of *symbol* oldest-lot-first.

        When *sale_price* is given the outcome also carries the realized
        profit of the consumed slices.  Raises ``InsufficientHoldingsError``
        (leaving the lots untouched) if fewer shares are held.
        """
        plan = self._plan_sale(symbol, quantity)
        lots = self._lots[symbol]
        consumed = [LotConsumption(unit_price=lots[index].unit_price, quantity=take) for index, take in plan]

        for index, take in plan:
            lots[index].quantity -= take
        lots[:] = [lot for lot in lots if lot.quantity > 0]
        if not lots:
            del self._lots[symbol]

        realized = None
        if sale_price is not None:
            realized = sum((sale_price - c.unit_price) * c.quantity for c in consumed)

        logger.debug(
            "Sale recorded: %s %d from %d lot(s); average cost now %d",
            symbol,
            quantity,
            len(consumed),
            self.weighted_average_cost(symbol),
        )
        return SaleOutcome(symbol=symbol, quantity=quantity, consumed=consumed, realized_profit=realized)

    def clear(self) -> None:
        self._lots.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def realized_profit(self, symbol: str, quantity: int, current_price: int) -> int:
        """Profit a sale of *quantity* at *current_price* would realize (read-only)."""
        plan = self._plan_sale(symbol, quantity)
        lots = self._lots[symbol]
        return sum((current_price - lots[index].unit_price) * take for index, take in plan)

    def weighted_average_cost(self, symbol: str) -> int:
        """``sum(q * p) // sum(q)`` over the current lots; 0 when there are none."""
        total = self.total_quantity(symbol)
        if total == 0:
            return 0
        return self.cost_basis(symbol) // total

    def cost_basis(self, symbol: str) -> int:
        return sum(lot.quantity * lot.unit_price for lot in self._lots.get(symbol, []))

    def total_quantity(self, symbol: str) -> int:
        return sum(lot.quantity for lot in self._lots.get(symbol, []))

    def lots(self, symbol: str) -> list[PurchaseLot]:
        """Copies of the lots for *symbol*, oldest first."""
        return [lot.model_copy() for lot in self._lots.get(symbol, [])]

    def symbols(self) -> list[str]:
        return list(self._lots)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._lots

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _plan_sale(self, symbol: str, quantity: int) -> list[tuple[int, int]]:
        """Return ``(lot_index, take)`` pairs for a FIFO sale, without mutating."""
        if quantity <= 0:
            raise InvalidInputError(f"Sale quantity must be positive, got {quantity} for {symbol}.")
        held = self.total_quantity(symbol)
        if quantity > held:
            raise InsufficientHoldingsError(
                f"Cannot sell {quantity} shares of {symbol}: only {held} in purchase lots."
            )

        plan: list[tuple[int, int]] = []
        remaining = quantity
        for index, lot in enumerate(self._lots[symbol]):
            if remaining == 0:
                break
            take = min(lot.quantity, remaining)
            plan.append((index, take))
            remaining -= take
        return plan
