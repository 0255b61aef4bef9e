"""Turn-by-turn price evolution and market events.

Every price-changing operation finishes by recomputing the catalog
rankings.  Nothing here touches holdings or cash.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping

from market.catalog import StockCatalog
from models.errors import InvalidInputError
from models.instrument import Sector, TurnEvent

logger = logging.getLogger(__name__)


class MarketSimulator:
    """Applies random, fixed and event-driven price changes to a catalog."""

    def __init__(
        self,
        catalog: StockCatalog,
        sector_volatility: Mapping[Sector, float],
        rng: random.Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._volatility = dict(sector_volatility)
        self._rng = rng if rng is not None else random.Random()

    def volatility(self, sector: Sector) -> float:
        try:
            return self._volatility[sector]
        except KeyError:
            raise InvalidInputError(f"No volatility configured for sector {sector.value}.") from None

    # ------------------------------------------------------------------
    # Random turn step
    # ------------------------------------------------------------------

    def advance_turn(self) -> dict[str, float]:
        """Move every price by a uniform draw in ``[-v, +v]`` of its sector.

        Returns the drawn change rate (percent) per symbol.
        """
        changes: dict[str, float] = {}
        for instrument in self._catalog.instruments():
            band = self.volatility(instrument.sector)
            rate = self._rng.uniform(-band, band)
            instrument.update_price(rate)
            changes[instrument.key] = rate
            logger.debug("  %s: %+.1f%% -> %d", instrument.key, rate, instrument.current_price)

        self._catalog.recompute_rankings()
        logger.info("Market advanced: %d instruments repriced.", len(changes))
        return changes

    # ------------------------------------------------------------------
    # Deterministic hooks
    # ------------------------------------------------------------------

    def apply_global_change(self, rate: float) -> None:
        """Apply the same *rate* to every instrument."""
        for instrument in self._catalog.instruments():
            instrument.update_price(rate)
        self._catalog.recompute_rankings()
        logger.info("Global market change: %+.1f%%", rate)

    def apply_sector_change(self, sector: Sector, rate: float) -> None:
        """Apply the same *rate* to every instrument of *sector*."""
        affected = self._catalog.by_sector(sector)
        for instrument in affected:
            instrument.update_price(rate)
        self._catalog.recompute_rankings()
        logger.info("%s sector change: %+.1f%% (%d instruments)", sector.value, rate, len(affected))

    def apply_stock_change(self, key: str, rate: float) -> None:
        """Apply *rate* to one instrument without re-ranking."""
        instrument = self._catalog.get(key)
        instrument.update_price(rate)
        logger.debug("Individual change: %s %+.1f%%", key, rate)

    # ------------------------------------------------------------------
    # Scheduled events
    # ------------------------------------------------------------------

    def apply_event(self, event: TurnEvent) -> dict[str, float]:
        """Apply every effect of *event* in order, then re-rank once.

        Returns the accumulated change rate per touched symbol.  An
        instrument hit by both a global and a sector effect gets both moves,
        one after the other.
        """
        changes: dict[str, float] = {}

        for effect in event.effects:
            if effect.is_global:
                for instrument in self._catalog.instruments():
                    if effect.use_individual_variation:
                        rate = self._rng.uniform(effect.variation_min, effect.variation_max)
                    else:
                        rate = effect.change_rate
                    self.apply_stock_change(instrument.key, rate)
                    changes[instrument.key] = changes.get(instrument.key, 0.0) + rate
            elif effect.use_individual_variation:
                for instrument in self._catalog.by_sector(effect.sector):
                    rate = effect.change_rate + self._rng.uniform(
                        effect.variation_min, effect.variation_max
                    )
                    self.apply_stock_change(instrument.key, rate)
                    changes[instrument.key] = changes.get(instrument.key, 0.0) + rate
            else:
                for instrument in self._catalog.by_sector(effect.sector):
                    self.apply_stock_change(instrument.key, effect.change_rate)
                    changes[instrument.key] = changes.get(instrument.key, 0.0) + effect.change_rate

        self._catalog.recompute_rankings()
        logger.info(
            "Event '%s' applied on turn %d: %d effect(s), %d instrument(s) moved.",
            event.event_key,
            event.turn,
            len(event.effects),
            len(changes),
        )
        return changes
