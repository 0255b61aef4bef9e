"""Game configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by
the market, the portfolio, the game session and the runner.  Every field
has a default, so ``GameConfig()`` is the standard ten-turn game.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from models.instrument import InstrumentDefinition, Sector, StockEffect, TurnEvent


def _default_instruments() -> list[InstrumentDefinition]:
    rows = [
        # Technology
        ("SmartTech", Sector.TECH, 45000),
        ("CloudKing", Sector.TECH, 36000),
        ("SearchMaster", Sector.TECH, 23600),
        ("SocialVerse", Sector.TECH, 26300),
        ("StreamPlus", Sector.TECH, 31200),
        # Semiconductors / AI
        ("NeoChips", Sector.SEM, 28500),
        ("ChipFactory", Sector.SEM, 19850),
        ("RyzenTech", Sector.SEM, 15200),
        # EV / energy
        ("ThunderMotors", Sector.EV, 18200),
        ("GreenCar", Sector.EV, 14750),
        ("CleanEnergy", Sector.EV, 12600),
        # Crypto assets
        ("DigitalGold", Sector.CRYPTO, 52800),
        ("SmartCoin", Sector.CRYPTO, 8950),
        # Traditional conglomerates
        ("KoreaElec", Sector.CORP, 67500),
        ("MemoryKing", Sector.CORP, 11400),
    ]
    return [InstrumentDefinition(key=k, sector=s, start_price=p) for k, s, p in rows]


def _default_volatility() -> dict[Sector, float]:
    return {
        Sector.TECH: 4.0,
        Sector.SEM: 6.0,
        Sector.EV: 7.0,
        Sector.CRYPTO: 10.0,
        Sector.CORP: 3.0,
    }


def _default_events() -> list[TurnEvent]:
    return [
        TurnEvent(
            event_key="ai_innovation",
            turn=3,
            effects=[
                StockEffect(is_global=True, use_individual_variation=True, variation_min=-2, variation_max=2),
                StockEffect(sector=Sector.SEM, change_rate=25, use_individual_variation=True, variation_min=-3, variation_max=3),
                StockEffect(sector=Sector.TECH, change_rate=15, use_individual_variation=True, variation_min=-3, variation_max=3),
            ],
        ),
        TurnEvent(
            event_key="energy_policy",
            turn=5,
            effects=[
                StockEffect(is_global=True, use_individual_variation=True, variation_min=-4, variation_max=4),
                StockEffect(sector=Sector.EV, change_rate=20, use_individual_variation=True, variation_min=-10, variation_max=10),
            ],
        ),
        TurnEvent(
            event_key="interest_rate",
            turn=7,
            effects=[
                StockEffect(is_global=True, use_individual_variation=True, variation_min=-5, variation_max=10),
                StockEffect(sector=Sector.TECH, change_rate=-10, use_individual_variation=True, variation_min=-5, variation_max=5),
                StockEffect(sector=Sector.CORP, change_rate=7.5, use_individual_variation=True, variation_min=-2.5, variation_max=2.5),
            ],
        ),
        TurnEvent(
            event_key="crypto_regulation",
            turn=9,
            effects=[
                StockEffect(is_global=True, use_individual_variation=True, variation_min=-5, variation_max=10),
                StockEffect(sector=Sector.CRYPTO, change_rate=-15, use_individual_variation=True, variation_min=-5, variation_max=5),
            ],
        ),
    ]


class TradingConfig(BaseModel):
    """Configuration for cash and trade execution."""

    initial_cash: int = Field(
        default=1_000_000,
        ge=0,
        description="Starting cash balance for the portfolio.",
    )
    fee_rate_pct: float = Field(
        default=1.0,
        ge=0.0,
        le=100.0,
        description="Trading fee as a percentage of the trade amount (buy and sell).",
    )


class MarketConfig(BaseModel):
    """Configuration for the instrument universe and price simulation."""

    instruments: list[InstrumentDefinition] = Field(
        default_factory=_default_instruments,
        min_length=1,
        description="Instrument universe in display order (also the ranking tie-break order).",
    )
    sector_volatility: dict[Sector, float] = Field(
        default_factory=_default_volatility,
        description="Half-width (in percent) of the uniform per-turn price move, by sector.",
    )
    events: list[TurnEvent] = Field(
        default_factory=_default_events,
        description="Market events applied at the start of their turn.",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for the market random source; None draws from the OS.",
    )

    @model_validator(mode="after")
    def _check_universe(self) -> MarketConfig:
        keys = [d.key for d in self.instruments]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate instrument key(s): {', '.join(duplicates)}.")

        missing = sorted(s.value for s in {d.sector for d in self.instruments} if s not in self.sector_volatility)
        if missing:
            raise ValueError(f"No volatility configured for sector(s): {', '.join(missing)}.")

        turns = [e.turn for e in self.events]
        if len(turns) != len(set(turns)):
            raise ValueError("At most one event may be scheduled per turn.")
        return self


class StrategyConfig(BaseModel):
    """Configuration for the scripted player driven by the runner."""

    name: str = Field(
        default="hold",
        description="Registered strategy name, e.g. 'hold', 'diversified', 'random'.",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for strategies that make random choices.",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Strategy-specific options.",
    )


class GradeThresholds(BaseModel):
    """Final-asset thresholds for the lifestyle grade (inclusive lower bounds)."""

    upper: int = 1_500_000
    middle_upper: int = 1_300_000
    middle: int = 1_000_000

    @model_validator(mode="after")
    def _check_order(self) -> GradeThresholds:
        if not self.upper >= self.middle_upper >= self.middle:
            raise ValueError("Grade thresholds must satisfy upper >= middle_upper >= middle.")
        return self


class GameConfig(BaseModel):
    """Top-level configuration for a game, loaded from YAML.

    The run name is derived from the config file path at load time rather
    than being specified inside the YAML itself.
    """

    max_turns: int = Field(default=10, ge=1, description="Number of turns in a game.")
    trading: TradingConfig = Field(default_factory=TradingConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    grade_thresholds: GradeThresholds = Field(default_factory=GradeThresholds)

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        """Load and validate a ``GameConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
