"""One game: the components, the turn counter and the event schedule.

``GameSession`` builds exactly one catalog, market simulator, ledger, lot
tracker, accountant, executor and history, and passes them to each other by
reference.  Independent sessions share nothing, so several can coexist
(e.g. in tests).

Turn flow::

    start()         -> turn 1 opens; turn 1's event (if any) fires.
    advance_turn()  -> the current turn closes: a random market step runs
                       unless the next turn has an event, diversification
                       is tracked, the turn snapshot is stored.
                       After the last turn every holding is force-sold and
                       the final ``GameResult`` is returned; otherwise the
                       next turn opens and its event fires.
"""

from __future__ import annotations

import logging
import random
from enum import Enum

from market.catalog import StockCatalog
from market.simulator import MarketSimulator
from models.config import GameConfig
from models.decision import Order, TradeResult
from models.errors import (
    GameOverError,
    NotInitializedError,
    PortfolioError,
)
from models.instrument import TurnEvent
from models.log import GameResult
from models.portfolio import DiversificationStatus, PerformerSummary
from portfolio.accountant import PortfolioAccountant, StateListener
from portfolio.executor import TradeExecutor
from portfolio.ledger import HoldingsLedger
from portfolio.lots import PurchaseLotTracker
from simulation.history import GameHistory

logger = logging.getLogger(__name__)


class GamePhase(str, Enum):
    READY = "ready"
    PLAYING = "playing"
    FINISHED = "finished"


class GameSession:
    """Owns every component of one game and drives its turns."""

    def __init__(self, config: GameConfig | None = None, rng: random.Random | None = None) -> None:
        self.config = config or GameConfig()

        self.catalog = StockCatalog()
        self.catalog.initialize(self.config.market.instruments)
        # A caller-supplied rng is kept across reset; an owned one is reseeded.
        self._owns_rng = rng is None
        self.market = self._build_market(rng)
        self.ledger = HoldingsLedger()
        self.lots = PurchaseLotTracker()
        self.accountant = PortfolioAccountant(
            self.catalog,
            self.ledger,
            self.lots,
            self.config.trading.initial_cash,
        )
        self.executor = TradeExecutor(
            self.catalog,
            self.ledger,
            self.lots,
            self.accountant,
            fee_rate_pct=self.config.trading.fee_rate_pct,
        )
        self.history = GameHistory()
        self.executor.add_listener(self.history.record_trade)

        self._events: dict[int, TurnEvent] = {e.turn: e for e in self.config.market.events}
        self._turn = 0
        self._phase = GamePhase.READY
        self._result: GameResult | None = None

    # ------------------------------------------------------------------
    # Game state
    # ------------------------------------------------------------------

    @property
    def turn(self) -> int:
        """Current turn number (0 before ``start``)."""
        return self._turn

    @property
    def max_turns(self) -> int:
        return self.config.max_turns

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def is_finished(self) -> bool:
        return self._phase == GamePhase.FINISHED

    @property
    def remaining_turns(self) -> int:
        return max(0, self.max_turns - self._turn)

    @property
    def result(self) -> GameResult | None:
        return self._result

    def event_for(self, turn: int) -> TurnEvent | None:
        return self._events.get(turn)

    def subscribe(self, listener: StateListener) -> None:
        """Call *listener* with a fresh ``PortfolioSnapshot`` after every mutation."""
        self.accountant.add_listener(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Open turn 1."""
        if self._phase != GamePhase.READY:
            raise RuntimeError(f"Cannot start a game in phase '{self._phase.value}'.")

        self._phase = GamePhase.PLAYING
        logger.info(
            "Game started: %d turns, %d instruments, initial cash %d.",
            self.max_turns,
            len(self.catalog),
            self.accountant.initial_cash,
        )
        self._open_turn(1)

    def advance_turn(self) -> GameResult | None:
        """Close the current turn and open the next one.

        Returns the final ``GameResult`` when the last turn closes, else
        ``None``.
        """
        if self._phase == GamePhase.READY:
            raise NotInitializedError("The game has not been started.")
        if self._phase == GamePhase.FINISHED:
            raise GameOverError("The game is already over.")

        if self.event_for(self._turn + 1) is None:
            self.market.advance_turn()
        else:
            logger.info("Turn %d: event scheduled next turn, random move skipped.", self._turn)

        self.accountant.track_diversification()
        self.history.end_turn(
            self.accountant.revalue("turn_end"),
            self.catalog.prices(),
            self.accountant.diversification_bonus_pct(),
        )

        if self._turn >= self.max_turns:
            return self._finish()

        self._open_turn(self._turn + 1)
        return None

    def reset_portfolio(self) -> None:
        """Clear holdings, lots, realized profit and diversification progress."""
        self.accountant.reset()

    def reset(self) -> None:
        """Restart from scratch: fresh prices, empty portfolio and history.

        With a configured seed and no injected rng the replayed game moves
        exactly like a fresh session.
        """
        self.catalog.initialize(self.config.market.instruments)
        if self._owns_rng:
            self.market = self._build_market()
        self.executor.clear_history()
        self.executor.current_turn = 0
        self.history.clear()
        self._turn = 0
        self._phase = GamePhase.READY
        self._result = None
        self.accountant.reset()
        logger.info("Game session reset.")

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def buy(self, symbol: str, quantity: int) -> TradeResult:
        rejection = self._check_trading_open("buy", symbol, quantity)
        if rejection is not None:
            return rejection
        return self.executor.buy(symbol, quantity)

    def sell(self, symbol: str, quantity: int) -> TradeResult:
        rejection = self._check_trading_open("sell", symbol, quantity)
        if rejection is not None:
            return rejection
        return self.executor.sell(symbol, quantity)

    def submit(self, order: Order) -> TradeResult:
        if order.side == "buy":
            return self.buy(order.symbol, order.quantity)
        return self.sell(order.symbol, order.quantity)

    def record_purchase(self, symbol: str, quantity: int, unit_price: int) -> None:
        self.executor.record_purchase(symbol, quantity, unit_price)

    def record_sale(self, symbol: str, quantity: int) -> int:
        return self.executor.record_sale(symbol, quantity)

    def max_affordable_quantity(self, symbol: str, budget: int | None = None) -> int:
        return self.executor.max_affordable_quantity(symbol, budget)

    def trading_fee(self, amount: int) -> int:
        return self.executor.trading_fee(amount)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def cash(self) -> int:
        return self.accountant.cash

    def holding_amount(self, symbol: str) -> int:
        return self.ledger.get(symbol)

    def all_holdings(self) -> dict[str, int]:
        return self.ledger.all()

    def average_purchase_price(self, symbol: str) -> int:
        return self.accountant.average_purchase_price(symbol)

    def total_asset_value(self) -> int:
        return self.accountant.total_asset_value()

    def return_rate_pct(self) -> float:
        return self.accountant.return_rate_pct()

    def diversification_bonus_pct(self) -> float:
        return self.accountant.diversification_bonus_pct()

    def diversification_status(self) -> DiversificationStatus:
        return self.accountant.diversification_status()

    def best_performer(self) -> PerformerSummary | None:
        return self.accountant.best_performer()

    def worst_performer(self) -> PerformerSummary | None:
        return self.accountant.worst_performer()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_market(self, rng: random.Random | None = None) -> MarketSimulator:
        return MarketSimulator(
            self.catalog,
            self.config.market.sector_volatility,
            rng if rng is not None else random.Random(self.config.market.seed),
        )

    def _open_turn(self, turn: int) -> None:
        self._turn = turn
        self.executor.current_turn = turn
        self.history.start_turn(turn, self.accountant.snapshot("turn_start"))

        event = self.event_for(turn)
        if event is not None:
            changes = self.market.apply_event(event)
            self.history.record_event(turn, event.event_key, changes)
        self.accountant.revalue("turn_start")

    def _finish(self) -> GameResult:
        # Rated before liquidation turns every holding into a sale.
        returns = self.history.investment_returns(self.accountant.positions())

        holdings = self.ledger.all()
        if holdings:
            logger.info("Game over: force-selling %d position(s).", len(holdings))
        for symbol, quantity in holdings.items():
            result = self.executor.sell(symbol, quantity)
            if not result.accepted:
                logger.error("Forced sale of %s failed: %s", symbol, result.message)

        self._phase = GamePhase.FINISHED
        self._result = self.history.build_result(
            self.accountant,
            self.config.grade_thresholds,
            self.max_turns,
            returns=returns,
        )
        self.accountant.revalue("game_over")
        return self._result

    def _check_trading_open(self, side: str, symbol: str, quantity: int) -> TradeResult | None:
        if self._phase == GamePhase.PLAYING:
            return None

        error: PortfolioError
        if self._phase == GamePhase.READY:
            error = NotInitializedError("The game has not been started.")
        else:
            error = GameOverError("The game is over; no more trades are accepted.")
        logger.warning("Rejected %s %s x%s: %s", side, symbol, quantity, error)
        return TradeResult(status="rejected", reason=error.reason, message=str(error))
