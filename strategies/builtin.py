"""Built-in scripted players: hold, diversified, random."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from pydantic import Field

from models.config import StrategyConfig
from models.decision import Order
from models.instrument import Instrument, Sector
from strategies.base import Strategy, StrategyOptions
from strategies.registry import register

if TYPE_CHECKING:
    from simulation.session import GameSession

logger = logging.getLogger(__name__)


@register("hold")
class HoldStrategy(Strategy):
    """Never trades; the final result is the initial cash with the -10% penalty."""

    def decide(self, session: GameSession) -> list[Order]:
        return []


class DiversifiedOptions(StrategyOptions):
    invest_pct: float = Field(default=90, gt=0, le=100, description="Share of cash to invest on the entry turn.")
    entry_turn: int = Field(default=1, ge=1, description="Turn on which to buy.")
    exit_turn: int | None = Field(default=None, ge=1, description="Turn on which to sell everything.")


@register("diversified")
class DiversifiedStrategy(Strategy):
    """Spread cash evenly over one instrument per sector, then hold."""

    options_model = DiversifiedOptions
    options: DiversifiedOptions

    def decide(self, session: GameSession) -> list[Order]:
        if self.options.exit_turn is not None and session.turn == self.options.exit_turn:
            return [
                Order(symbol=symbol, side="sell", quantity=quantity)
                for symbol, quantity in session.all_holdings().items()
            ]
        if session.turn != self.options.entry_turn:
            return []

        picks = self._pick_per_sector(session.catalog.instruments())
        if not picks:
            return []
        budget = int(session.cash * self.options.invest_pct / 100) // len(picks)

        orders = []
        for instrument in picks:
            quantity = session.max_affordable_quantity(instrument.key, budget)
            if quantity > 0:
                orders.append(Order(symbol=instrument.key, side="buy", quantity=quantity))
        logger.debug("Diversified entry: %d order(s), budget %d each.", len(orders), budget)
        return orders

    @staticmethod
    def _pick_per_sector(instruments: list[Instrument]) -> list[Instrument]:
        """Best-ranked instrument of every sector, in sector order."""
        best: dict[Sector, Instrument] = {}
        for instrument in instruments:
            current = best.get(instrument.sector)
            if current is None or instrument.rank < current.rank:
                best[instrument.sector] = instrument
        return [best[s] for s in Sector if s in best]


class RandomOptions(StrategyOptions):
    max_quantity: int = Field(default=10, ge=1, description="Cap on the shares per buy order.")
    sell_probability: float = Field(
        default=0.4, ge=0, le=1, description="Chance to sell when holding anything."
    )


@register("random")
class RandomStrategy(Strategy):
    """Makes one random buy or sell per turn, seeded by ``StrategyConfig.seed``."""

    options_model = RandomOptions
    options: RandomOptions

    def __init__(self, config: StrategyConfig, options: StrategyOptions | None = None) -> None:
        super().__init__(config, options)
        self._rng = random.Random(config.seed)

    def decide(self, session: GameSession) -> list[Order]:
        holdings = session.all_holdings()
        if holdings and self._rng.random() < self.options.sell_probability:
            symbol = self._rng.choice(sorted(holdings))
            quantity = self._rng.randint(1, holdings[symbol])
            return [Order(symbol=symbol, side="sell", quantity=quantity)]

        symbol = self._rng.choice(session.catalog.keys())
        ceiling = min(self.options.max_quantity, session.max_affordable_quantity(symbol))
        if ceiling < 1:
            return []
        return [Order(symbol=symbol, side="buy", quantity=self._rng.randint(1, ceiling))]
