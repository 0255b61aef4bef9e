"""Game history and result models.

- ``TurnSnapshot`` — per-turn portfolio valuation and the trades made in it.
- ``EventRecord`` — a market event that fired, with its average impact.
- ``SectorPerformance`` — money put into and taken out of one sector.
- ``GameResult`` — final, diversification-adjusted outcome of a game.
- ``GameLog`` — run-level log with embedded config for reproducibility.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from models.config import GameConfig
from models.decision import ExecutedTrade
from models.instrument import Sector
from models.portfolio import PerformerSummary, PortfolioSnapshot


class LifestyleGrade(str, Enum):
    UPPER = "upper"
    MIDDLE_UPPER = "middle_upper"
    MIDDLE = "middle"
    LOWER = "lower"


class InvestmentGrade(str, Enum):
    """Grade by profit rate: >=80 genius, >=50 expert, >=20 master, >=0 beginner."""

    GENIUS = "genius"
    EXPERT = "expert"
    MASTER = "master"
    BEGINNER = "beginner"
    TRAINEE = "trainee"


class Achievement(str, Enum):
    INVESTMENT_KING = "investment_king"  # profit rate >= 100%
    PRECISE_TIMING = "precise_timing"  # profit rate >= 50%
    QUICK_JUDGMENT = "quick_judgment"  # win rate >= 80%
    LUCKY_INVESTOR = "lucky_investor"  # win rate >= 60%
    DIVERSIFICATION_MASTER = "diversification_master"  # traded in >= 4 sectors
    PORTFOLIO_MANAGER = "portfolio_manager"  # traded in >= 3 sectors
    ACTIVE_TRADER = "active_trader"  # >= 50 trades
    PATIENT_INVESTOR = "patient_investor"  # <= 20 trades
    NEWS_MASTER = "news_master"  # >= 10 trades on event turns


class InvestmentStyle(str, Enum):
    EVENT_DRIVEN = "event_driven"
    LONG_TERM = "long_term"
    DAY_TRADER = "day_trader"
    TECH_SPECIALIST = "tech_specialist"
    RISK_SEEKER = "risk_seeker"
    BALANCED = "balanced"


class SectorPerformance(BaseModel):
    """Return of one sector over the whole game.

    ``recovered_amount`` is what came back (sales) plus what is still held,
    valued at the current price.  Amounts exclude fees.
    """

    sector: Sector
    invested_amount: int
    sold_amount: int
    holding_value: int
    recovered_amount: int
    profit: int
    return_pct: float


class EventRecord(BaseModel):
    turn: int
    event_key: str
    average_impact_pct: float
    changes: dict[str, float] = {}


class TurnSnapshot(BaseModel):
    """Portfolio state at the end of a turn.

    Opened when the turn starts and refreshed when it ends, so
    ``start_total_asset_value`` and ``portfolio.total_asset_value`` bracket
    everything that happened during the turn (trades and price moves).
    """

    turn: int
    start_total_asset_value: int
    portfolio: PortfolioSnapshot
    prices: dict[str, int] = {}
    trades: list[ExecutedTrade] = []
    diversification_bonus_pct: float = 0.0


class GameResult(BaseModel):
    """Final outcome, computed after the forced end-of-game liquidation."""

    initial_cash: int
    total_asset_value: int  # Before the diversification bonus
    max_sectors_diversified: int
    diversification_bonus_pct: float
    final_asset: int
    total_profit: int
    profit_rate_pct: float
    realized_profit: int
    lifestyle_grade: LifestyleGrade
    total_turns: int
    total_trades: int
    profitable_trades: int
    win_rate_pct: float
    total_fees: int
    best_performer: PerformerSummary | None = None
    worst_performer: PerformerSummary | None = None
    investment_grade: InvestmentGrade = InvestmentGrade.BEGINNER
    investment_style: InvestmentStyle = InvestmentStyle.BALANCED
    achievements: list[Achievement] = []
    sector_performance: list[SectorPerformance] = []


class GameLog(BaseModel):
    """Run-level log with embedded configuration for reproducibility.

    ``run_name`` is derived from the configuration file path by the runner.
    """

    run_name: str
    config: GameConfig
    turns: list[TurnSnapshot] = []
    trades: list[ExecutedTrade] = []
    events: list[EventRecord] = []
    rejections: list[str] = []
    result: GameResult | None = None
