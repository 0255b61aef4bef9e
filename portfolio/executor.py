"""In-process trade execution with fees.

The executor validates and applies buy/sell requests using all-or-nothing
semantics: every check runs before the first mutation, so a rejected
request leaves cash, holdings and purchase lots exactly as they were.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from market.catalog import StockCatalog
from models.decision import ExecutedTrade, TradeResult
from models.errors import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidInputError,
    PortfolioError,
)
from portfolio.accountant import PortfolioAccountant
from portfolio.ledger import HoldingsLedger
from portfolio.lots import PurchaseLotTracker

logger = logging.getLogger(__name__)

DEFAULT_FEE_RATE_PCT = 1.0

TradeListener = Callable[[ExecutedTrade], None]


class TradeExecutor:
    """Stateful executor that validates, applies and records trades.

    The executor owns no portfolio state itself: it coordinates the ledger,
    the lot tracker and the accountant so that the three always move
    together.
    """

    def __init__(
        self,
        catalog: StockCatalog,
        ledger: HoldingsLedger,
        lots: PurchaseLotTracker,
        accountant: PortfolioAccountant,
        fee_rate_pct: float | None = None,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._lots = lots
        self._accountant = accountant
        self._fee_rate_pct = DEFAULT_FEE_RATE_PCT if fee_rate_pct is None else fee_rate_pct
        self._trade_history: list[ExecutedTrade] = []
        self._listeners: list[TradeListener] = []
        # Stamped on every executed trade; the game session keeps it current.
        self.current_turn = 0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def fee_rate_pct(self) -> float:
        return self._fee_rate_pct

    def trading_fee(self, amount: int) -> int:
        """Fee for a trade of *amount*, rounded half-to-even to whole units."""
        return round(amount * self._fee_rate_pct / 100)

    def get_trade_history(self) -> list[ExecutedTrade]:
        """Return the full list of executed trades so far."""
        return list(self._trade_history)

    def add_listener(self, listener: TradeListener) -> None:
        self._listeners.append(listener)

    def clear_history(self) -> None:
        self._trade_history.clear()

    def buy(self, symbol: str, quantity: int) -> TradeResult:
        """Buy *quantity* shares of *symbol* at the current price plus fee."""
        try:
            trade = self._execute_buy(symbol, quantity)
        except PortfolioError as exc:
            return self._reject("buy", symbol, quantity, exc)
        return self._accept(trade)

    def sell(self, symbol: str, quantity: int) -> TradeResult:
        """Sell *quantity* shares of *symbol* at the current price minus fee."""
        try:
            trade = self._execute_sell(symbol, quantity)
        except PortfolioError as exc:
            return self._reject("sell", symbol, quantity, exc)
        return self._accept(trade)

    def max_affordable_quantity(self, symbol: str, budget: int | None = None) -> int:
        """Largest quantity whose cost plus fee fits in *budget* (capped at the cash).

        Starts from the analytic estimate ``cash / (price * (1 + rate))`` and
        corrects it with the exact fee function used by ``buy``, so the
        answer is always accepted by a subsequent buy.  Zero-priced
        instruments return 0.
        """
        price = self._catalog.price_of(symbol)
        if price <= 0:
            return 0

        cash = self._accountant.cash
        if budget is not None:
            cash = min(cash, budget)
        if cash <= 0:
            return 0
        quantity = int(cash / (price * (1 + self._fee_rate_pct / 100)))
        while quantity > 0 and not self._affordable(price, quantity, cash):
            quantity -= 1
        while self._affordable(price, quantity + 1, cash):
            quantity += 1
        return quantity

    def record_purchase(self, symbol: str, quantity: int, unit_price: int) -> None:
        """Book a purchase made elsewhere: holdings and lots move, cash does not.

        For collaborators that settle cash themselves.  Raises
        ``PortfolioError`` subclasses instead of returning a result.
        """
        self._catalog.get(symbol)
        self._check_quantity(symbol, quantity)
        if unit_price < 0:
            raise InvalidInputError(f"Unit price must not be negative, got {unit_price} for {symbol}.")

        self._lots.record_purchase(symbol, quantity, unit_price)
        self._ledger.apply_buy(symbol, quantity)
        self._accountant.mark_invested()
        self._accountant.revalue(f"record_purchase:{symbol}")

    def record_sale(self, symbol: str, quantity: int) -> int:
        """Book a sale made elsewhere at the current price; cash does not move.

        Returns the realized profit, which is also accumulated.
        """
        price = self._catalog.price_of(symbol)
        self._check_quantity(symbol, quantity)
        held = self._ledger.get(symbol)
        if quantity > held:
            raise InsufficientHoldingsError(
                f"Cannot sell {quantity} shares of {symbol}: only {held} held."
            )

        outcome = self._lots.record_sale(symbol, quantity, sale_price=price)
        self._ledger.apply_sell(symbol, quantity)
        realized = outcome.realized_profit or 0
        self._accountant.record_realized_profit(realized)
        self._accountant.revalue(f"record_sale:{symbol}")
        return realized

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute_buy(self, symbol: str, quantity: int) -> ExecutedTrade:
        instrument = self._catalog.get(symbol)
        self._check_quantity(symbol, quantity)

        price = instrument.current_price
        cost = price * quantity
        fee = self.trading_fee(cost)
        total_cost = cost + fee
        cash = self._accountant.cash
        if total_cost > cash:
            raise InsufficientFundsError(
                f"Insufficient cash to buy {quantity} shares of {symbol} at {price} "
                f"(cost {cost} + fee {fee} = {total_cost}, available {cash})."
            )

        # Validated; nothing below can fail.
        self._accountant.debit(total_cost)
        self._ledger.apply_buy(symbol, quantity)
        self._lots.record_purchase(symbol, quantity, price)
        self._accountant.mark_invested()

        return ExecutedTrade(
            trade_id=uuid.uuid4().hex[:12],
            turn=self.current_turn,
            symbol=symbol,
            sector=instrument.sector,
            side="buy",
            quantity=quantity,
            price=price,
            amount=cost,
            fee=fee,
            cash_after=self._accountant.cash,
        )

    def _execute_sell(self, symbol: str, quantity: int) -> ExecutedTrade:
        instrument = self._catalog.get(symbol)
        self._check_quantity(symbol, quantity)

        held = self._ledger.get(symbol)
        if quantity > held:
            raise InsufficientHoldingsError(
                f"Cannot sell {quantity} shares of {symbol}: only {held} held."
            )

        price = instrument.current_price
        proceeds = price * quantity
        fee = self.trading_fee(proceeds)
        net = proceeds - fee

        # Lots first: realized profit and consumption share one pre-sale
        # FIFO plan, and the ledger still shows the pre-sale quantity.
        outcome = self._lots.record_sale(symbol, quantity, sale_price=price)
        self._ledger.apply_sell(symbol, quantity)
        self._accountant.credit(net)
        self._accountant.record_realized_profit(outcome.realized_profit or 0)

        return ExecutedTrade(
            trade_id=uuid.uuid4().hex[:12],
            turn=self.current_turn,
            symbol=symbol,
            sector=instrument.sector,
            side="sell",
            quantity=quantity,
            price=price,
            amount=proceeds,
            fee=fee,
            cash_after=self._accountant.cash,
            realized_profit=outcome.realized_profit,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _accept(self, trade: ExecutedTrade) -> TradeResult:
        self._trade_history.append(trade)
        logger.info(
            "%s %d %s @ %d (fee %d); cash %d",
            trade.side.upper(),
            trade.quantity,
            trade.symbol,
            trade.price,
            trade.fee,
            trade.cash_after,
        )
        self._accountant.revalue(f"{trade.side}:{trade.symbol}")
        for listener in list(self._listeners):
            listener(trade)
        return TradeResult(
            status="accepted",
            message=f"{trade.side.capitalize()} {trade.quantity} {trade.symbol} @ {trade.price}.",
            trade=trade,
        )

    @staticmethod
    def _reject(side: str, symbol: str, quantity: int, exc: PortfolioError) -> TradeResult:
        logger.warning("Rejected %s %s x%s: %s", side, symbol, quantity, exc)
        return TradeResult(status="rejected", reason=exc.reason, message=str(exc))

    @staticmethod
    def _check_quantity(symbol: str, quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidInputError(
                f"Order quantity must be a positive integer, got {quantity!r} for {symbol}."
            )

    def _affordable(self, price: int, quantity: int, cash: int) -> bool:
        cost = price * quantity
        return cost + self.trading_fee(cost) <= cash
