"""Data models for the stock-trading game.

The market, portfolio and simulation packages all import from models.
"""

from models.config import GameConfig, GradeThresholds, MarketConfig, StrategyConfig, TradingConfig
from models.decision import ExecutedTrade, Order, TradeResult
from models.errors import (
    GameOverError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidInputError,
    NotInitializedError,
    PortfolioError,
    RejectionReason,
)
from models.instrument import (
    Instrument,
    InstrumentDefinition,
    RankChange,
    Sector,
    StockEffect,
    TurnEvent,
)
from models.log import (
    Achievement,
    EventRecord,
    GameLog,
    GameResult,
    InvestmentGrade,
    InvestmentStyle,
    LifestyleGrade,
    SectorPerformance,
    TurnSnapshot,
)
from models.portfolio import (
    DiversificationStatus,
    LotConsumption,
    PerformerSummary,
    PortfolioSnapshot,
    PositionSnapshot,
    PurchaseLot,
    SaleOutcome,
)

__all__ = [
    # config
    "GameConfig",
    "GradeThresholds",
    "MarketConfig",
    "StrategyConfig",
    "TradingConfig",
    # decision
    "ExecutedTrade",
    "Order",
    "TradeResult",
    # errors
    "GameOverError",
    "InsufficientFundsError",
    "InsufficientHoldingsError",
    "InvalidInputError",
    "NotInitializedError",
    "PortfolioError",
    "RejectionReason",
    # instrument
    "Instrument",
    "InstrumentDefinition",
    "RankChange",
    "Sector",
    "StockEffect",
    "TurnEvent",
    # log
    "Achievement",
    "EventRecord",
    "GameLog",
    "GameResult",
    "InvestmentGrade",
    "InvestmentStyle",
    "LifestyleGrade",
    "SectorPerformance",
    "TurnSnapshot",
    # portfolio
    "DiversificationStatus",
    "LotConsumption",
    "PerformerSummary",
    "PortfolioSnapshot",
    "PositionSnapshot",
    "PurchaseLot",
    "SaleOutcome",
]
