"""Instrument and market-event models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class Sector(str, Enum):
    """Market sectors; every instrument belongs to exactly one."""

    TECH = "TECH"
    SEM = "SEM"
    EV = "EV"
    CRYPTO = "CRYPTO"
    CORP = "CORP"


class RankChange(str, Enum):
    """Direction of a rank move (a lower rank number is better)."""

    UP = "up"
    DOWN = "down"
    SAME = "same"


class InstrumentDefinition(BaseModel):
    """Static definition used to seed the catalog."""

    key: str = Field(min_length=1, description="Unique instrument identifier.")
    name: str | None = Field(
        default=None,
        description="Display name; defaults to the key.",
    )
    sector: Sector
    start_price: int = Field(ge=0, description="Starting price in currency units.")


class Instrument(BaseModel):
    """Live price and rank state of one tradable instrument.

    Created once at catalog initialization and mutated in place every turn.
    """

    key: str
    name: str
    sector: Sector
    current_price: int = Field(ge=0)
    previous_price: int = Field(ge=0)
    change_rate_pct: float = 0.0
    rank: int = Field(default=1, ge=1)
    previous_rank: int = Field(default=1, ge=1)
    rank_change: RankChange = RankChange.SAME

    @classmethod
    def from_definition(cls, definition: InstrumentDefinition) -> Instrument:
        return cls(
            key=definition.key,
            name=definition.name or definition.key,
            sector=definition.sector,
            current_price=definition.start_price,
            previous_price=definition.start_price,
        )

    def update_price(self, change_rate_pct: float) -> None:
        """Move the price by *change_rate_pct* percent.

        The new price is rounded half-to-even and never drops below zero.
        """
        self.previous_price = self.current_price
        self.change_rate_pct = change_rate_pct
        self.current_price = max(0, round(self.current_price * (1 + change_rate_pct / 100)))

    def update_rank(self, new_rank: int) -> None:
        self.previous_rank = self.rank
        self.rank = new_rank

        if self.previous_rank > self.rank:
            self.rank_change = RankChange.UP
        elif self.previous_rank < self.rank:
            self.rank_change = RankChange.DOWN
        else:
            self.rank_change = RankChange.SAME


class StockEffect(BaseModel):
    """One price effect of a scheduled market event.

    A global effect touches every instrument; a sector effect touches only
    the instruments of ``sector``.  With ``use_individual_variation`` each
    instrument draws its own offset from ``[variation_min, variation_max]``
    (global effects use the drawn value alone, sector effects add it to
    ``change_rate``).
    """

    is_global: bool = False
    sector: Sector | None = None
    change_rate: float = 0.0
    use_individual_variation: bool = False
    variation_min: float = 0.0
    variation_max: float = 0.0

    @model_validator(mode="after")
    def _check_target(self) -> StockEffect:
        if not self.is_global and self.sector is None:
            raise ValueError("A sector effect must name a sector.")
        if self.variation_min > self.variation_max:
            raise ValueError(
                f"variation_min ({self.variation_min}) exceeds variation_max ({self.variation_max})."
            )
        return self


class TurnEvent(BaseModel):
    """A market event scheduled for the start of a given turn."""

    event_key: str
    turn: int = Field(ge=1)
    effects: list[StockEffect] = []
