"""Trade, turn and event history for one game, and the final result."""

from __future__ import annotations

import logging
from collections import Counter

from models.config import GradeThresholds
from models.decision import ExecutedTrade
from models.instrument import Sector
from models.log import (
    Achievement,
    EventRecord,
    GameResult,
    InvestmentGrade,
    InvestmentStyle,
    LifestyleGrade,
    SectorPerformance,
    TurnSnapshot,
)
from models.portfolio import PerformerSummary, PortfolioSnapshot, PositionSnapshot
from portfolio.accountant import PortfolioAccountant

logger = logging.getLogger(__name__)


def lifestyle_grade(final_asset: int, thresholds: GradeThresholds) -> LifestyleGrade:
    if final_asset >= thresholds.upper:
        return LifestyleGrade.UPPER
    if final_asset >= thresholds.middle_upper:
        return LifestyleGrade.MIDDLE_UPPER
    if final_asset >= thresholds.middle:
        return LifestyleGrade.MIDDLE
    return LifestyleGrade.LOWER


def investment_grade(profit_rate_pct: float) -> InvestmentGrade:
    if profit_rate_pct >= 80:
        return InvestmentGrade.GENIUS
    if profit_rate_pct >= 50:
        return InvestmentGrade.EXPERT
    if profit_rate_pct >= 20:
        return InvestmentGrade.MASTER
    if profit_rate_pct >= 0:
        return InvestmentGrade.BEGINNER
    return InvestmentGrade.TRAINEE


def _pct(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


class GameHistory:
    """Collects trades, turn snapshots and events as a game is played.

    Call ``start_turn`` when a turn opens and ``end_turn`` when it closes;
    trades recorded in between are attached to the open turn.
    """

    def __init__(self) -> None:
        self._turns: list[TurnSnapshot] = []
        self._trades: list[ExecutedTrade] = []
        self._events: list[EventRecord] = []
        self._open: TurnSnapshot | None = None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_turn(self, turn: int, portfolio: PortfolioSnapshot) -> None:
        if self._open is not None:
            logger.warning("Turn %d started while turn %d was still open.", turn, self._open.turn)
            self._turns.append(self._open)
        self._open = TurnSnapshot(
            turn=turn,
            start_total_asset_value=portfolio.total_asset_value,
            portfolio=portfolio,
        )
        logger.info("Turn %d started; total assets %d.", turn, portfolio.total_asset_value)

    def end_turn(
        self,
        portfolio: PortfolioSnapshot,
        prices: dict[str, int],
        diversification_bonus_pct: float,
    ) -> TurnSnapshot | None:
        if self._open is None:
            logger.warning("end_turn called with no open turn.")
            return None
        closed = self._open.model_copy(
            update={
                "portfolio": portfolio,
                "prices": dict(prices),
                "diversification_bonus_pct": diversification_bonus_pct,
            }
        )
        self._turns.append(closed)
        self._open = None
        logger.info(
            "Turn %d ended; total assets %d -> %d.",
            closed.turn,
            closed.start_total_asset_value,
            portfolio.total_asset_value,
        )
        return closed

    def record_trade(self, trade: ExecutedTrade) -> None:
        self._trades.append(trade)
        if self._open is not None:
            self._open.trades.append(trade)

    def record_event(self, turn: int, event_key: str, changes: dict[str, float]) -> EventRecord:
        average = sum(changes.values()) / len(changes) if changes else 0.0
        record = EventRecord(
            turn=turn,
            event_key=event_key,
            average_impact_pct=average,
            changes=dict(changes),
        )
        self._events.append(record)
        return record

    def clear(self) -> None:
        self._turns.clear()
        self._trades.clear()
        self._events.clear()
        self._open = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def turns(self) -> list[TurnSnapshot]:
        return list(self._turns)

    @property
    def trades(self) -> list[ExecutedTrade]:
        return list(self._trades)

    @property
    def events(self) -> list[EventRecord]:
        return list(self._events)

    def total_fees(self) -> int:
        return sum(t.fee for t in self._trades)

    def event_turn_trades(self) -> list[ExecutedTrade]:
        """Trades made on a turn whose event fired."""
        event_turns = {e.turn for e in self._events}
        return [t for t in self._trades if t.turn in event_turns]

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def investment_returns(self, positions: list[PositionSnapshot]) -> list[PerformerSummary]:
        """Return of every investment made during the game.

        Held positions (with a cost basis) are rated on average cost.
        Symbols that were bought and are no longer held are rated on
        ``(sold - bought - fees) / bought``, amounts from the trade records.
        Held positions come first, in holdings order, then sold symbols in
        order of first trade.
        """
        returns = [
            PerformerSummary(symbol=p.symbol, return_pct=p.return_pct)
            for p in positions
            if p.cost_basis > 0
        ]
        held = {p.symbol for p in positions}

        bought: dict[str, int] = {}
        sold: dict[str, int] = {}
        fees: dict[str, int] = {}
        for trade in self._trades:
            if trade.symbol in held:
                continue
            totals = bought if trade.side == "buy" else sold
            totals[trade.symbol] = totals.get(trade.symbol, 0) + trade.amount
            fees[trade.symbol] = fees.get(trade.symbol, 0) + trade.fee

        for symbol, invested in bought.items():
            if invested <= 0:
                continue
            profit = sold.get(symbol, 0) - invested - fees[symbol]
            returns.append(PerformerSummary(symbol=symbol, return_pct=_pct(profit, invested)))
        return returns

    def sector_performance(self, positions: list[PositionSnapshot]) -> list[SectorPerformance]:
        """Per-sector return over every trade plus what is still held, best first.

        Sectors that were never bought are left out.
        """
        bought: dict[Sector, int] = {}
        sold: dict[Sector, int] = {}
        for trade in self._trades:
            totals = bought if trade.side == "buy" else sold
            totals[trade.sector] = totals.get(trade.sector, 0) + trade.amount
        held: dict[Sector, int] = {}
        for position in positions:
            held[position.sector] = held.get(position.sector, 0) + position.market_value

        performance = []
        for sector in Sector:
            invested = bought.get(sector, 0)
            if invested <= 0:
                continue
            recovered = sold.get(sector, 0) + held.get(sector, 0)
            performance.append(
                SectorPerformance(
                    sector=sector,
                    invested_amount=invested,
                    sold_amount=sold.get(sector, 0),
                    holding_value=held.get(sector, 0),
                    recovered_amount=recovered,
                    profit=recovered - invested,
                    return_pct=_pct(recovered - invested, invested),
                )
            )
        performance.sort(key=lambda p: p.return_pct, reverse=True)
        return performance

    def achievements(self, profit_rate_pct: float, win_rate_pct: float) -> list[Achievement]:
        earned = []
        if profit_rate_pct >= 100:
            earned.append(Achievement.INVESTMENT_KING)
        if profit_rate_pct >= 50:
            earned.append(Achievement.PRECISE_TIMING)
        if win_rate_pct >= 80:
            earned.append(Achievement.QUICK_JUDGMENT)
        if win_rate_pct >= 60:
            earned.append(Achievement.LUCKY_INVESTOR)

        sectors = len({t.sector for t in self._trades})
        if sectors >= 4:
            earned.append(Achievement.DIVERSIFICATION_MASTER)
        if sectors >= 3:
            earned.append(Achievement.PORTFOLIO_MANAGER)

        if len(self._trades) >= 50:
            earned.append(Achievement.ACTIVE_TRADER)
        if len(self._trades) <= 20:
            earned.append(Achievement.PATIENT_INVESTOR)

        if len(self.event_turn_trades()) >= 10:
            earned.append(Achievement.NEWS_MASTER)
        return earned

    def investment_style(self) -> InvestmentStyle:
        """First matching label: event-driven, long-term, day trader, then by favorite sector."""
        trades = self._trades
        if not trades:
            return InvestmentStyle.BALANCED
        if len(self.event_turn_trades()) > len(trades) * 0.3:
            return InvestmentStyle.EVENT_DRIVEN
        # Average holding period, approximated as turns per trade.
        if len(self._turns) / len(trades) >= 5:
            return InvestmentStyle.LONG_TERM
        if len(trades) >= 40:
            return InvestmentStyle.DAY_TRADER

        favorite = Counter(t.sector for t in trades).most_common(1)[0][0]
        if favorite == Sector.TECH:
            return InvestmentStyle.TECH_SPECIALIST
        if favorite == Sector.CRYPTO:
            return InvestmentStyle.RISK_SEEKER
        return InvestmentStyle.BALANCED

    def build_result(
        self,
        accountant: PortfolioAccountant,
        thresholds: GradeThresholds,
        total_turns: int,
        returns: list[PerformerSummary] | None = None,
    ) -> GameResult:
        """Final result with the best diversification bonus applied.

        The bonus uses the highest sector count reached during the game,
        not the count at the end (which is 0 after liquidation).
        *returns* rates the investments for best/worst performer; the
        session passes the ones captured before liquidation.  Without it
        they are rated on the current positions and trades.
        """
        if returns is None:
            returns = self.investment_returns(accountant.positions())
        best = max(returns, key=lambda r: r.return_pct) if returns else None
        worst = min(returns, key=lambda r: r.return_pct) if returns else None

        total = accountant.total_asset_value()
        bonus_pct = accountant.best_diversification_bonus_pct()
        final_asset = total + round(total * bonus_pct / 100)
        initial = accountant.initial_cash
        profit = final_asset - initial

        sells = [t for t in self._trades if t.side == "sell"]
        profitable = sum(1 for t in sells if (t.realized_profit or 0) > 0)
        profit_rate = _pct(profit, initial)
        win_rate = _pct(profitable, len(sells))

        result = GameResult(
            initial_cash=initial,
            total_asset_value=total,
            max_sectors_diversified=accountant.max_diversified_sectors,
            diversification_bonus_pct=bonus_pct,
            final_asset=final_asset,
            total_profit=profit,
            profit_rate_pct=profit_rate,
            realized_profit=accountant.realized_profit,
            lifestyle_grade=lifestyle_grade(final_asset, thresholds),
            total_turns=total_turns,
            total_trades=len(self._trades),
            profitable_trades=profitable,
            win_rate_pct=win_rate,
            total_fees=self.total_fees(),
            best_performer=best,
            worst_performer=worst,
            investment_grade=investment_grade(profit_rate),
            investment_style=self.investment_style(),
            achievements=self.achievements(profit_rate, win_rate),
            sector_performance=self.sector_performance(accountant.positions()),
        )
        logger.info(
            "Final result: assets %d, bonus %+.0f%%, final %d, profit rate %.1f%%, grade %s (%s)",
            total,
            bonus_pct,
            final_asset,
            result.profit_rate_pct,
            result.lifestyle_grade.value,
            result.investment_grade.value,
        )
        return result
