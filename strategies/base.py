"""Abstract base class for scripted players.

Every strategy implements this protocol so the game runner can drive them
interchangeably.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel

from models.config import StrategyConfig
from models.decision import Order

if TYPE_CHECKING:
    from simulation.session import GameSession


class StrategyOptions(BaseModel):
    """Base for per-strategy ``options``; unknown keys are rejected."""

    model_config = {"extra": "forbid"}


class Strategy(ABC):
    """Common interface for pluggable players.

    Lifecycle:
        1. ``__init__`` — receive the strategy config and its options,
           already validated against ``options_model``.
        2. ``decide`` — called once per turn, after the turn's event (if
           any) has moved prices.  Orders are submitted in list order.
    """

    name: ClassVar[str] = ""
    options_model: ClassVar[type[StrategyOptions]] = StrategyOptions

    def __init__(self, config: StrategyConfig, options: StrategyOptions | None = None) -> None:
        self.config = config
        self.options = options if options is not None else self.options_model.model_validate(config.options)

    @abstractmethod
    def decide(self, session: GameSession) -> list[Order]:
        """Return the orders to submit this turn (empty list = hold).

        Implementations should only read from *session*; the runner submits
        the orders and records any rejection.
        """
