"""Portfolio state models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from models.instrument import Sector


class PurchaseLot(BaseModel):
    """One purchase batch retained until it is sold (FIFO)."""

    quantity: int = Field(gt=0)
    unit_price: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=datetime.now)


class LotConsumption(BaseModel):
    """The part of one lot consumed by a sale."""

    unit_price: int
    quantity: int


class SaleOutcome(BaseModel):
    """What a FIFO sale consumed, and the profit it realized when priced."""

    symbol: str
    quantity: int
    consumed: list[LotConsumption]
    realized_profit: int | None = None

    @property
    def cost_basis(self) -> int:
        return sum(c.unit_price * c.quantity for c in self.consumed)


class PositionSnapshot(BaseModel):
    """Valuation of one held symbol."""

    symbol: str
    sector: Sector
    quantity: int
    current_price: int
    average_cost: int
    cost_basis: int
    market_value: int
    unrealized_profit: int
    return_pct: float


class PerformerSummary(BaseModel):
    """Best or worst investment by return: held on average cost, sold on net proceeds."""

    symbol: str
    return_pct: float


class DiversificationStatus(BaseModel):
    """Current sector spread and the high-water mark used for the final bonus.

    ``has_invested`` separates "no data yet" (0 sectors, never bought) from
    a portfolio that is all-in on one sector, although both map to -10%.
    """

    sector_count: int = Field(ge=0, le=5)
    bonus_pct: float
    has_invested: bool
    max_sector_count: int = Field(ge=0, le=5)
    best_bonus_pct: float


class PortfolioSnapshot(BaseModel):
    """Cash, positions (symbol -> shares) and derived figures at a point in time.

    Produced by the accountant after every mutation and handed to state
    listeners; never used as a source of truth.
    """

    cash: int
    positions: dict[str, int]
    stock_value: int = 0
    total_asset_value: int = 0
    return_rate_pct: float = 0.0
    realized_profit: int = 0
    unrealized_profit: int = 0
    reason: str = ""
