"""Authoritative symbol -> quantity map."""

from __future__ import annotations

import logging

from models.errors import InsufficientHoldingsError, InvalidInputError

logger = logging.getLogger(__name__)


class HoldingsLedger:
    """Quantity held per symbol.  Symbols whose quantity drops to 0 are removed."""

    def __init__(self) -> None:
        self._holdings: dict[str, int] = {}

    def apply_buy(self, symbol: str, quantity: int) -> int:
        """Add *quantity* shares of *symbol*; return the new quantity."""
        if quantity <= 0:
            raise InvalidInputError(f"Quantity must be positive, got {quantity} for {symbol}.")
        self._holdings[symbol] = self._holdings.get(symbol, 0) + quantity
        return self._holdings[symbol]

    def apply_sell(self, symbol: str, quantity: int) -> int:
        """Remove *quantity* shares of *symbol*; return what is left."""
        if quantity <= 0:
            raise InvalidInputError(f"Quantity must be positive, got {quantity} for {symbol}.")
        held = self._holdings.get(symbol, 0)
        if quantity > held:
            raise InsufficientHoldingsError(
                f"Cannot sell {quantity} shares of {symbol}: only {held} held."
            )

        remaining = held - quantity
        if remaining == 0:
            del self._holdings[symbol]
        else:
            self._holdings[symbol] = remaining
        return remaining

    def get(self, symbol: str) -> int:
        return self._holdings.get(symbol, 0)

    def all(self) -> dict[str, int]:
        """Copy of every nonzero holding."""
        return dict(self._holdings)

    def total_quantity(self) -> int:
        return sum(self._holdings.values())

    def clear(self) -> None:
        self._holdings.clear()
        logger.debug("Holdings ledger cleared.")

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._holdings

    def __len__(self) -> int:
        return len(self._holdings)
