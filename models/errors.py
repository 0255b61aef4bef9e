"""Error taxonomy shared by the market, portfolio and simulation packages.

Component-level calls (catalog lookups, lot bookkeeping) raise these
exceptions.  The trade boundary (``TradeExecutor`` and ``GameSession``)
catches ``PortfolioError`` and turns it into a rejected ``TradeResult``
so that callers never see a partially applied trade.
"""

from __future__ import annotations

from enum import Enum


class RejectionReason(str, Enum):
    """Machine-readable reason attached to a rejected trade."""

    INVALID_INPUT = "invalid_input"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"
    NOT_INITIALIZED = "not_initialized"
    GAME_OVER = "game_over"


class PortfolioError(Exception):
    """Base class for recoverable trading and bookkeeping errors."""

    reason: RejectionReason = RejectionReason.INVALID_INPUT


class InvalidInputError(PortfolioError, ValueError):
    """Non-positive quantity, negative price, unknown symbol, bad definitions."""

    reason = RejectionReason.INVALID_INPUT


class InsufficientFundsError(PortfolioError):
    """A buy would cost more than the available cash."""

    reason = RejectionReason.INSUFFICIENT_FUNDS


class InsufficientHoldingsError(PortfolioError):
    """A sell exceeds the quantity currently held."""

    reason = RejectionReason.INSUFFICIENT_HOLDINGS


class NotInitializedError(PortfolioError, RuntimeError):
    """The catalog or session was used before setup completed."""

    reason = RejectionReason.NOT_INITIALIZED


class GameOverError(PortfolioError):
    """A trade was submitted after the final turn ended."""

    reason = RejectionReason.GAME_OVER
