"""Registry of tradable instruments and their live price/rank state."""

from __future__ import annotations

import logging
from typing import Iterable

from models.errors import InvalidInputError, NotInitializedError
from models.instrument import Instrument, InstrumentDefinition, Sector

logger = logging.getLogger(__name__)


class StockCatalog:
    """Owns every ``Instrument`` for one game session.

    Instruments are created by ``initialize`` and then mutated in place by
    the market simulator; they are never removed.  Input order is kept
    because it is the tie-break for rankings.
    """

    def __init__(self) -> None:
        self._instruments: list[Instrument] = []
        self._by_key: dict[str, Instrument] = {}
        self._initialized = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self, definitions: Iterable[InstrumentDefinition]) -> None:
        """(Re)populate the catalog from *definitions* and rank it."""
        instruments = [Instrument.from_definition(d) for d in definitions]
        if not instruments:
            raise InvalidInputError("Cannot initialize a catalog with no instruments.")

        by_key: dict[str, Instrument] = {}
        for instrument in instruments:
            if instrument.key in by_key:
                raise InvalidInputError(f"Duplicate instrument key '{instrument.key}'.")
            by_key[instrument.key] = instrument

        self._instruments = instruments
        self._by_key = by_key
        self._initialized = True
        self.recompute_rankings()
        logger.info("Catalog initialized with %d instruments.", len(instruments))

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, key: str) -> Instrument:
        """Return the live instrument for *key*.

        Raises ``InvalidInputError`` for an unknown key.
        """
        self._require_initialized()
        try:
            return self._by_key[key]
        except KeyError:
            raise InvalidInputError(f"Unknown symbol '{key}'.") from None

    def price_of(self, key: str) -> int:
        return self.get(key).current_price

    def instruments(self) -> list[Instrument]:
        """All instruments in input order (a new list of the live objects)."""
        self._require_initialized()
        return list(self._instruments)

    def keys(self) -> list[str]:
        self._require_initialized()
        return [i.key for i in self._instruments]

    def by_sector(self, sector: Sector) -> list[Instrument]:
        self._require_initialized()
        return [i for i in self._instruments if i.sector == sector]

    def ranked(self) -> list[Instrument]:
        """Instruments ordered by rank (1 = highest price)."""
        self._require_initialized()
        return sorted(self._instruments, key=lambda i: i.rank)

    def prices(self) -> dict[str, int]:
        self._require_initialized()
        return {i.key: i.current_price for i in self._instruments}

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __len__(self) -> int:
        return len(self._instruments)

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------

    def recompute_rankings(self) -> None:
        """Rank by current price descending; equal prices keep input order."""
        self._require_initialized()
        # sorted() is stable, so ties stay in input order.
        ordered = sorted(self._instruments, key=lambda i: i.current_price, reverse=True)
        for position, instrument in enumerate(ordered):
            instrument.update_rank(position + 1)

        logger.debug(
            "Rankings recomputed; top: %s",
            ", ".join(f"{i.rank}. {i.key} ({i.current_price})" for i in ordered[:3]),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("Stock catalog has not been initialized.")
