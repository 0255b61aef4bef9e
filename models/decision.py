"""Trade request and execution models: Order, ExecutedTrade, TradeResult."""

from typing import Literal

from pydantic import BaseModel, Field

from models.errors import RejectionReason
from models.instrument import Sector


class Order(BaseModel):
    """Single order: symbol, side, quantity."""

    symbol: str
    side: Literal["buy", "sell"]
    quantity: int


class ExecutedTrade(BaseModel):
    """Single executed fill produced by the executor from one request."""

    trade_id: str
    turn: int = 0  # Stamped by the session; 0 when traded outside a game
    symbol: str
    sector: Sector
    side: Literal["buy", "sell"]
    quantity: int
    price: int
    amount: int  # price * quantity, before fees
    fee: int
    cash_after: int
    realized_profit: int | None = None  # Sells only


class TradeResult(BaseModel):
    """Outcome of one buy/sell request.

    Execution is all-or-nothing: either the trade is accepted and fully
    applied (cash, holdings and lots together), or it is rejected and no
    state changes.  When rejected, ``reason`` is set and ``message``
    explains it.
    """

    status: Literal["accepted", "rejected"]
    reason: RejectionReason | None = None
    message: str = ""
    trade: ExecutedTrade | None = Field(
        default=None,
        description="Present only when status is 'accepted'.",
    )

    @property
    def accepted(self) -> bool:
        return self.status == "accepted"
