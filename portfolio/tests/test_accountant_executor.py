"""
Tests for trade execution and portfolio accounting.

Tests verify:
  1. Buy/sell cash, fee and realized-profit arithmetic
  2. Rejections leave cash, holdings and lots untouched
  3. Ledger and lot quantities always agree
  4. Return rate stays correct after full liquidation
  5. Diversification bonus, high-water mark and performers
  6. Listeners, direct record_purchase/record_sale and reset
"""

import pytest

from market.catalog import StockCatalog
from models.errors import InsufficientHoldingsError, InvalidInputError, RejectionReason
from models.instrument import InstrumentDefinition, Sector
from portfolio.accountant import DIVERSIFICATION_BONUS, PortfolioAccountant, diversification_bonus_for
from portfolio.executor import TradeExecutor
from portfolio.ledger import HoldingsLedger
from portfolio.lots import PurchaseLotTracker

INITIAL_CASH = 1_000_000


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def catalog() -> StockCatalog:
    c = StockCatalog()
    c.initialize(
        [
            InstrumentDefinition(key="TechA", sector=Sector.TECH, start_price=10000),
            InstrumentDefinition(key="TechB", sector=Sector.TECH, start_price=5000),
            InstrumentDefinition(key="SemA", sector=Sector.SEM, start_price=20000),
            InstrumentDefinition(key="EvA", sector=Sector.EV, start_price=8000),
            InstrumentDefinition(key="CoinA", sector=Sector.CRYPTO, start_price=1000),
            InstrumentDefinition(key="CorpA", sector=Sector.CORP, start_price=50000),
        ]
    )
    return c


def _build(catalog: StockCatalog, fee_rate_pct: float = 1.0, initial_cash: int = INITIAL_CASH):
    ledger = HoldingsLedger()
    lots = PurchaseLotTracker()
    accountant = PortfolioAccountant(catalog, ledger, lots, initial_cash)
    executor = TradeExecutor(catalog, ledger, lots, accountant, fee_rate_pct=fee_rate_pct)
    return ledger, lots, accountant, executor


@pytest.fixture
def parts(catalog):
    return _build(catalog)


def _assert_consistent(ledger: HoldingsLedger, lots: PurchaseLotTracker) -> None:
    assert set(ledger.all()) == set(lots.symbols())
    for symbol, quantity in ledger.all().items():
        assert lots.total_quantity(symbol) == quantity


# =============================================================================
# FEES
# =============================================================================


class TestFees:
    def test_default_rate(self, catalog):
        ledger = HoldingsLedger()
        lots = PurchaseLotTracker()
        accountant = PortfolioAccountant(catalog, ledger, lots, INITIAL_CASH)
        executor = TradeExecutor(catalog, ledger, lots, accountant)
        assert executor.fee_rate_pct == 1.0
        assert executor.trading_fee(100000) == 1000

    def test_half_to_even_rounding(self, parts):
        _, _, _, executor = parts
        assert executor.trading_fee(150) == 2
        assert executor.trading_fee(250) == 2
        assert executor.trading_fee(0) == 0


# =============================================================================
# BUY / SELL
# =============================================================================


class TestBuySell:
    def test_buy_debits_cost_plus_fee(self, parts):
        ledger, lots, accountant, executor = parts
        result = executor.buy("TechA", 10)

        assert result.accepted
        assert result.trade.amount == 100000
        assert result.trade.fee == 1000
        assert accountant.cash == 899000
        assert ledger.get("TechA") == 10
        assert lots.weighted_average_cost("TechA") == 10000
        assert accountant.has_invested
        _assert_consistent(ledger, lots)

    def test_sell_credits_net_and_realizes_profit(self, parts, catalog):
        ledger, lots, accountant, executor = parts
        executor.buy("TechA", 10)
        catalog.get("TechA").update_price(20)  # 12000

        result = executor.sell("TechA", 4)

        assert result.accepted
        assert result.trade.amount == 48000
        assert result.trade.fee == 480
        assert result.trade.realized_profit == 8000
        assert accountant.cash == 899000 + 47520
        assert accountant.realized_profit == 8000
        assert ledger.get("TechA") == 6
        _assert_consistent(ledger, lots)

    def test_realized_profit_excludes_fees(self, parts):
        _, _, accountant, executor = parts
        executor.buy("TechA", 5)
        executor.sell("TechA", 5)
        assert accountant.realized_profit == 0
        assert accountant.cash < INITIAL_CASH

    def test_fifo_sale_through_executor(self, parts, catalog):
        ledger, lots, accountant, executor = parts
        executor.buy("CoinA", 3)  # 3 @ 1000
        catalog.get("CoinA").update_price(100)  # 2000
        executor.buy("CoinA", 5)  # 5 @ 2000
        catalog.get("CoinA").update_price(50)  # 3000

        result = executor.sell("CoinA", 4)

        # (3000-1000)*3 + (3000-2000)*1
        assert result.trade.realized_profit == 7000
        assert [(lot.quantity, lot.unit_price) for lot in lots.lots("CoinA")] == [(4, 2000)]
        assert accountant.average_purchase_price("CoinA") == 2000
        _assert_consistent(ledger, lots)

    def test_trade_history_and_listener(self, parts):
        _, _, _, executor = parts
        seen = []
        executor.add_listener(seen.append)
        executor.current_turn = 3

        executor.buy("TechA", 1)
        executor.sell("TechA", 1)
        executor.sell("TechA", 1)  # rejected

        history = executor.get_trade_history()
        assert [t.side for t in history] == ["buy", "sell"]
        assert all(t.turn == 3 for t in history)
        assert seen == history
        executor.clear_history()
        assert executor.get_trade_history() == []


# =============================================================================
# REJECTIONS
# =============================================================================


class TestRejections:
    def _state(self, ledger, lots, accountant):
        return (
            accountant.cash,
            ledger.all(),
            {s: [(lot.quantity, lot.unit_price) for lot in lots.lots(s)] for s in lots.symbols()},
            accountant.realized_profit,
        )

    def test_insufficient_funds(self, parts):
        ledger, lots, accountant, executor = parts
        executor.buy("TechA", 10)
        before = self._state(ledger, lots, accountant)

        result = executor.buy("CorpA", 100)

        assert not result.accepted
        assert result.reason == RejectionReason.INSUFFICIENT_FUNDS
        assert result.trade is None
        assert self._state(ledger, lots, accountant) == before

    def test_insufficient_holdings(self, parts):
        ledger, lots, accountant, executor = parts
        executor.buy("TechA", 10)
        before = self._state(ledger, lots, accountant)

        result = executor.sell("TechA", 11)

        assert result.reason == RejectionReason.INSUFFICIENT_HOLDINGS
        assert self._state(ledger, lots, accountant) == before

    def test_sell_unheld_symbol(self, parts):
        _, _, _, executor = parts
        assert executor.sell("SemA", 1).reason == RejectionReason.INSUFFICIENT_HOLDINGS

    @pytest.mark.parametrize("quantity", [0, -5, True, 2.5])
    def test_bad_quantity(self, parts, quantity):
        ledger, lots, accountant, executor = parts
        before = self._state(ledger, lots, accountant)
        assert executor.buy("TechA", quantity).reason == RejectionReason.INVALID_INPUT
        assert executor.sell("TechA", quantity).reason == RejectionReason.INVALID_INPUT
        assert self._state(ledger, lots, accountant) == before

    def test_unknown_symbol(self, parts):
        _, _, _, executor = parts
        result = executor.buy("Nope", 1)
        assert result.reason == RejectionReason.INVALID_INPUT
        assert "Nope" in result.message

    def test_uninitialized_catalog(self):
        ledger, lots, accountant, executor = _build(StockCatalog())
        result = executor.buy("TechA", 1)
        assert result.reason == RejectionReason.NOT_INITIALIZED
        assert accountant.cash == INITIAL_CASH


# =============================================================================
# MAX AFFORDABLE QUANTITY
# =============================================================================


class TestMaxAffordable:
    def test_fee_aware_quantity(self, parts):
        _, _, accountant, executor = parts
        # 99 * 10000 * 1.01 = 999900 fits; 100 shares would need 1010000.
        assert executor.max_affordable_quantity("TechA") == 99
        assert executor.buy("TechA", 99).accepted
        assert accountant.cash == 100
        assert executor.max_affordable_quantity("TechA") == 0

    def test_answer_is_always_accepted(self, catalog):
        for rate in (0.0, 0.25, 1.0, 3.3):
            _, _, _, executor = _build(catalog, fee_rate_pct=rate, initial_cash=987_654)
            for symbol in catalog.keys():
                quantity = executor.max_affordable_quantity(symbol)
                price = catalog.price_of(symbol)
                cost = price * (quantity + 1)
                assert cost + executor.trading_fee(cost) > 987_654
                if quantity:
                    cost = price * quantity
                    assert cost + executor.trading_fee(cost) <= 987_654

    def test_zero_price_returns_zero(self, parts, catalog):
        _, _, _, executor = parts
        catalog.get("CoinA").update_price(-100)
        assert catalog.price_of("CoinA") == 0
        assert executor.max_affordable_quantity("CoinA") == 0

    def test_budget_limits_quantity(self, parts):
        _, _, _, executor = parts
        # 5 * 10000 + 1% fee = 50500.
        assert executor.max_affordable_quantity("TechA", budget=50_500) == 5
        assert executor.max_affordable_quantity("TechA", budget=50_499) == 4
        assert executor.max_affordable_quantity("TechA", budget=0) == 0
        assert executor.max_affordable_quantity("TechA", budget=-1) == 0

    def test_budget_capped_at_cash(self, parts):
        _, _, _, executor = parts
        assert executor.max_affordable_quantity("TechA", budget=5_000_000) == 99


# =============================================================================
# VALUATION
# =============================================================================


class TestValuation:
    def test_total_asset_value(self, parts, catalog):
        _, _, accountant, executor = parts
        executor.buy("TechA", 10)
        assert accountant.stock_value() == 100000
        assert accountant.total_asset_value() == 999000
        assert accountant.return_rate_pct() == pytest.approx(-0.1)

        catalog.get("TechA").update_price(20)
        assert accountant.total_asset_value() == 899000 + 120000
        assert accountant.unrealized_profit() == 20000

    def test_full_liquidation_return(self, catalog):
        ledger, _, accountant, executor = _build(catalog, fee_rate_pct=0.0)
        executor.buy("TechA", 100)
        assert accountant.cash == 0
        catalog.get("TechA").update_price(10)  # 11000

        executor.sell("TechA", 100)

        assert ledger.all() == {}
        assert accountant.cash == 1_100_000
        assert accountant.return_rate_pct() == pytest.approx(10.0)

    def test_zero_initial_cash(self, catalog):
        _, _, accountant, _ = _build(catalog, initial_cash=0)
        assert accountant.return_rate_pct() == 0.0
        assert accountant.cash_ratio_pct() == 0.0

    def test_negative_initial_cash_rejected(self, catalog):
        with pytest.raises(InvalidInputError):
            _build(catalog, initial_cash=-1)

    def test_positions_snapshot(self, parts, catalog):
        _, _, accountant, executor = parts
        executor.buy("SemA", 2)
        catalog.get("SemA").update_price(-10)  # 18000

        (position,) = accountant.positions()
        assert position.symbol == "SemA"
        assert position.sector == Sector.SEM
        assert position.average_cost == 20000
        assert position.market_value == 36000
        assert position.unrealized_profit == -4000
        assert position.return_pct == pytest.approx(-10.0)

    def test_cash_ratio(self, parts):
        _, _, accountant, executor = parts
        assert accountant.cash_ratio_pct() == pytest.approx(100.0)
        executor.buy("TechA", 10)
        assert accountant.cash_ratio_pct() == pytest.approx(899000 / 999000 * 100)


# =============================================================================
# DIVERSIFICATION AND PERFORMERS
# =============================================================================


class TestDiversification:
    def test_bonus_table(self):
        assert {n: diversification_bonus_for(n) for n in range(6)} == DIVERSIFICATION_BONUS
        assert diversification_bonus_for(2) == 5
        assert diversification_bonus_for(5) == 20
        assert diversification_bonus_for(9) == 20

    def test_negative_count_rejected(self):
        with pytest.raises(InvalidInputError):
            diversification_bonus_for(-1)

    def test_bonus_grows_with_sectors(self, parts):
        _, _, accountant, executor = parts
        status = accountant.diversification_status()
        assert (status.sector_count, status.bonus_pct, status.has_invested) == (0, -10, False)

        expected = [("TechA", 1, -10), ("TechB", 1, -10), ("SemA", 2, 5), ("EvA", 3, 10), ("CoinA", 4, 15), ("CorpA", 5, 20)]
        for symbol, count, bonus in expected:
            executor.buy(symbol, 1)
            assert accountant.distinct_sector_count() == count
            assert accountant.diversification_bonus_pct() == bonus
        assert accountant.diversification_status().has_invested

    def test_high_water_mark(self, parts):
        _, _, accountant, executor = parts
        executor.buy("TechA", 1)
        executor.buy("SemA", 1)
        executor.buy("EvA", 1)
        assert accountant.track_diversification() == 3

        executor.sell("SemA", 1)
        executor.sell("EvA", 1)
        accountant.track_diversification()

        status = accountant.diversification_status()
        assert status.sector_count == 1
        assert status.max_sector_count == 3
        assert status.best_bonus_pct == 10
        assert accountant.best_diversification_bonus_pct() == 10

    def test_high_water_mark_only_moves_on_track(self, parts):
        _, _, accountant, executor = parts
        executor.buy("TechA", 1)
        executor.buy("SemA", 1)
        assert accountant.max_diversified_sectors == 0
        accountant.track_diversification()
        assert accountant.max_diversified_sectors == 2


class TestPerformers:
    def test_none_without_positions(self, parts):
        _, _, accountant, _ = parts
        assert accountant.best_performer() is None
        assert accountant.worst_performer() is None

    def test_best_and_worst(self, parts, catalog):
        _, _, accountant, executor = parts
        executor.buy("TechA", 10)
        executor.buy("SemA", 5)
        executor.buy("EvA", 5)
        catalog.get("TechA").update_price(20)
        catalog.get("SemA").update_price(-10)

        best = accountant.best_performer()
        worst = accountant.worst_performer()
        assert (best.symbol, best.return_pct) == ("TechA", pytest.approx(20.0))
        assert (worst.symbol, worst.return_pct) == ("SemA", pytest.approx(-10.0))

    def test_ties_keep_holdings_order(self, parts):
        _, _, accountant, executor = parts
        executor.buy("SemA", 1)
        executor.buy("TechA", 1)
        assert accountant.best_performer().symbol == "SemA"
        assert accountant.worst_performer().symbol == "SemA"

    def test_zero_cost_positions_skipped(self, parts):
        _, _, accountant, executor = parts
        executor.record_purchase("TechA", 5, 0)
        assert accountant.best_performer() is None
        executor.buy("SemA", 1)
        assert accountant.best_performer().symbol == "SemA"


# =============================================================================
# DIRECT RECORDING, LISTENERS AND RESET
# =============================================================================


class TestRecording:
    def test_record_purchase_leaves_cash(self, parts):
        ledger, lots, accountant, executor = parts
        executor.record_purchase("TechA", 1, 45000)
        executor.record_purchase("TechA", 2, 50000)
        assert accountant.cash == INITIAL_CASH
        assert ledger.get("TechA") == 3
        assert accountant.average_purchase_price("TechA") == 48333
        _assert_consistent(ledger, lots)

    def test_record_sale_returns_realized(self, parts):
        ledger, lots, accountant, executor = parts
        executor.record_purchase("TechA", 2, 8000)
        realized = executor.record_sale("TechA", 2)  # at 10000
        assert realized == 4000
        assert accountant.realized_profit == 4000
        assert accountant.cash == INITIAL_CASH
        assert ledger.all() == {}
        _assert_consistent(ledger, lots)

    def test_record_errors_raise(self, parts):
        _, _, _, executor = parts
        with pytest.raises(InvalidInputError):
            executor.record_purchase("TechA", 0, 100)
        with pytest.raises(InvalidInputError):
            executor.record_purchase("Nope", 1, 100)
        with pytest.raises(InsufficientHoldingsError):
            executor.record_sale("TechA", 1)


class TestListenersAndReset:
    def test_listener_gets_snapshot_after_trade(self, parts):
        _, _, accountant, executor = parts
        snapshots = []
        accountant.add_listener(snapshots.append)

        executor.buy("TechA", 10)

        assert len(snapshots) == 1
        snap = snapshots[0]
        assert snap.reason == "buy:TechA"
        assert snap.cash == 899000
        assert snap.positions == {"TechA": 10}
        assert snap.total_asset_value == snap.cash + snap.stock_value

    def test_rejection_does_not_notify(self, parts):
        _, _, accountant, executor = parts
        snapshots = []
        accountant.add_listener(snapshots.append)
        executor.sell("TechA", 1)
        assert snapshots == []

    def test_remove_listener(self, parts):
        _, _, accountant, executor = parts
        snapshots = []
        accountant.add_listener(snapshots.append)
        accountant.remove_listener(snapshots.append)
        executor.buy("TechA", 1)
        assert snapshots == []

    def test_reset_clears_everything(self, parts, catalog):
        ledger, lots, accountant, executor = parts
        executor.buy("TechA", 10)
        executor.buy("SemA", 1)
        catalog.get("TechA").update_price(20)
        executor.sell("TechA", 5)
        accountant.track_diversification()
        snapshots = []
        accountant.add_listener(snapshots.append)

        accountant.reset()

        assert accountant.cash == INITIAL_CASH
        assert ledger.all() == {}
        assert lots.symbols() == []
        assert accountant.realized_profit == 0
        assert accountant.max_diversified_sectors == 0
        assert not accountant.has_invested
        assert snapshots[-1].reason == "reset"
