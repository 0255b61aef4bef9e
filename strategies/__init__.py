"""Scripted players for running whole games without a user interface."""

from .base import Strategy, StrategyOptions
from .registry import available_strategies, create_strategy, register, strategy_class

__all__ = [
    "Strategy",
    "StrategyOptions",
    "available_strategies",
    "create_strategy",
    "register",
    "strategy_class",
]
