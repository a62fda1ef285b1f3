"""Tests for the lot aggregator."""

import logging
from datetime import date

import pytest
from pallet_ledger.allocation import EvenSplitAllocation
from pallet_ledger.config import get_settings
from pallet_ledger.lots import (
    LotAggregator,
    calculate_lot_net_profit,
    calculate_lot_profit,
    calculate_lot_roi,
    lot_profit_result,
)
from pallet_ledger.models import Expense, ExpenseCategory, Item, ItemStatus, Lot


def _make_lot(
    lot_id: str = "lot-1",
    cost: float = 500.0,
    tax: float | None = 30.0,
) -> Lot:
    return Lot(
        id=lot_id,
        name=f"Pallet {lot_id}",
        acquisition_cost=cost,
        tax_amount=tax,
        acquisition_date=date(2026, 1, 3),
    )


def _make_item(
    item_id: str,
    sale_price: float | None = None,
    lot_id: str = "lot-1",
    listing_price: float | None = None,
    retail_price: float | None = None,
    override_cost: float | None = None,
    sellable: bool = True,
) -> Item:
    return Item(
        id=item_id,
        lot_id=lot_id,
        sale_price=sale_price,
        listing_price=listing_price,
        retail_price=retail_price,
        override_cost=override_cost,
        sellable=sellable,
        status=ItemStatus.SOLD if sale_price is not None else ItemStatus.LISTED,
    )


def _make_expense(expense_id: str, amount: float, lots: list[str]) -> Expense:
    return Expense(
        id=expense_id,
        amount=amount,
        category=ExpenseCategory.SUPPLIES,
        expense_date=date(2026, 1, 10),
        linked_lot_ids=lots,
    )


class TestCalculateLotProfit:
    def setup_method(self):
        self.lot = _make_lot(cost=500.0, tax=30.0)
        self.items = [
            _make_item("a", 200.0),
            _make_item("b", 300.0),
            _make_item("c", 250.0),
        ]
        self.expenses = [_make_expense("e1", 50.0, ["lot-1"])]

    def test_three_sales_and_one_expense(self):
        result = calculate_lot_profit(self.lot, self.items, self.expenses)
        assert result.total_revenue == pytest.approx(750.0)
        assert result.item_cost == pytest.approx(530.0)
        assert result.expense_total == pytest.approx(50.0)
        assert result.total_cost == pytest.approx(580.0)
        assert result.net_profit == pytest.approx(170.0)
        assert result.roi_percent == pytest.approx(170.0 / 580.0 * 100)

    def test_counts(self):
        items = self.items + [_make_item("d", listing_price=40.0)]
        result = calculate_lot_profit(self.lot, items, self.expenses)
        assert result.sold_items_count == 3
        assert result.unsold_items_count == 1
        assert result.total_items_count == 4

    def test_shared_expense_contributes_its_share(self):
        expenses = [_make_expense("e1", 50.0, ["lot-1", "lot-2"])]
        result = calculate_lot_profit(self.lot, self.items, expenses)
        assert result.expense_total == pytest.approx(25.0)
        assert result.total_cost == pytest.approx(555.0)

    def test_expenses_for_other_lots_ignored(self):
        expenses = [
            _make_expense("e1", 50.0, ["lot-2"]),
            _make_expense("e2", 30.0, []),
        ]
        result = calculate_lot_profit(self.lot, self.items, expenses)
        assert result.expense_total == 0.0

    def test_items_of_other_lots_ignored(self):
        items = self.items + [_make_item("x", 999.0, lot_id="lot-2")]
        result = calculate_lot_profit(self.lot, items, self.expenses)
        assert result.total_revenue == pytest.approx(750.0)
        assert result.total_items_count == 3

    def test_cost_is_lot_cost_not_item_overrides(self):
        items = [_make_item("a", 200.0, override_cost=1.0)]
        result = calculate_lot_profit(self.lot, items)
        assert result.item_cost == pytest.approx(530.0)

    def test_missing_tax_treated_as_zero(self):
        result = calculate_lot_profit(_make_lot(tax=None), self.items)
        assert result.tax_amount == 0.0
        assert result.total_cost == pytest.approx(500.0)

    def test_sold_without_sale_price_adds_no_revenue(self):
        items = [
            Item(id="a", lot_id="lot-1", status=ItemStatus.SOLD),
            _make_item("b", 100.0),
        ]
        result = calculate_lot_profit(self.lot, items)
        assert result.total_revenue == pytest.approx(100.0)
        assert result.sold_items_count == 1
        assert result.unsold_items_count == 0


class TestUnsoldValue:
    def test_listing_then_retail_then_zero(self):
        items = [
            _make_item("a", listing_price=40.0, retail_price=90.0),
            _make_item("b", retail_price=25.0),
            _make_item("c"),
            _make_item("d", 10.0, listing_price=500.0),
        ]
        result = calculate_lot_profit(_make_lot(), items)
        assert result.unsold_value == pytest.approx(65.0)


class TestROIEdgeCases:
    def test_zero_cost_with_profit_is_100(self):
        result = calculate_lot_profit(
            _make_lot(cost=0.0, tax=None), [_make_item("a", 15.0)]
        )
        assert result.total_cost == 0.0
        assert result.roi_percent == 100.0

    def test_zero_cost_without_profit_is_0(self):
        result = calculate_lot_profit(_make_lot(cost=0.0, tax=None), [_make_item("a")])
        assert result.roi_percent == 0.0

    def test_loss(self):
        result = calculate_lot_profit(_make_lot(cost=100.0, tax=None), [])
        assert result.net_profit == -100.0
        assert result.roi_percent == -100.0


class TestNoLot:
    def test_none_lot_gives_all_zero_result(self):
        result = calculate_lot_profit(None, [_make_item("a", 10.0)])
        assert result.total_revenue == 0.0
        assert result.total_cost == 0.0
        assert result.net_profit == 0.0
        assert result.roi_percent == 0.0
        assert result.total_items_count == 0

    def test_helpers_accept_none(self):
        assert calculate_lot_net_profit(None, []) == 0.0
        assert calculate_lot_roi(None, []) == 0.0
        assert lot_profit_result(None, []).revenue == 0.0


class TestHelpers:
    def test_net_profit_and_roi(self):
        lot = _make_lot(cost=100.0, tax=None)
        items = [_make_item("a", 150.0)]
        assert calculate_lot_net_profit(lot, items) == pytest.approx(50.0)
        assert calculate_lot_roi(lot, items) == pytest.approx(50.0)

    def test_profit_result_shape(self):
        result = lot_profit_result(_make_lot(cost=100.0, tax=None), [_make_item("a", 150.0)])
        assert result.cost == pytest.approx(100.0)
        assert result.profit_display == "$50.00"


class TestSkipAndContinue:
    def test_malformed_item_does_not_abort(self, caplog):
        items = [
            {"id": "a", "lot_id": "lot-1", "status": "sold", "sale_price": 200.0},
            {"id": "bad", "lot_id": "lot-1", "status": "sold", "sale_price": "lots"},
            {"id": "c", "lot_id": "lot-1", "status": "sold", "sale_price": 300.0},
        ]
        with caplog.at_level(logging.WARNING, logger="ledger.models"):
            result = calculate_lot_profit(_make_lot(), items)
        assert result.total_revenue == pytest.approx(500.0)
        assert result.total_items_count == 2
        assert "Skipping malformed Item" in caplog.text

    def test_malformed_expense_does_not_abort(self):
        expenses = [
            {"id": "e1", "amount": 20.0, "expense_date": "2026-01-01",
             "linked_lot_ids": ["lot-1"]},
            {"id": "e2", "amount": float("nan"), "expense_date": "2026-01-01",
             "linked_lot_ids": ["lot-1"]},
        ]
        result = calculate_lot_profit(_make_lot(), [], expenses)
        assert result.expense_total == pytest.approx(20.0)


class TestLotAggregator:
    def setup_method(self):
        self.aggregator = LotAggregator()
        self.lot = _make_lot(cost=90.0, tax=None)
        self.items = [
            _make_item("a", 50.0),
            _make_item("b", 20.0, override_cost=5.0),
            _make_item("c", sellable=False),
            _make_item("d"),
        ]

    def test_allocation_skips_unsellable(self):
        costs = self.aggregator.allocations([self.lot], self.items)
        assert costs == {"a": 30.0, "b": 30.0, "c": 0.0, "d": 30.0}

    def test_include_unsellable(self):
        aggregator = LotAggregator(include_unsellable=True)
        costs = aggregator.allocations([self.lot], self.items)
        assert costs["c"] == pytest.approx(22.5)

    def test_include_unsellable_from_settings(self, monkeypatch):
        monkeypatch.setenv("PALLET_LEDGER_INCLUDE_UNSELLABLE", "true")
        get_settings.cache_clear()
        assert LotAggregator().include_unsellable is True

    def test_item_results_use_override_first(self):
        results = self.aggregator.item_results(self.lot, self.items)
        assert results["a"].net_profit == pytest.approx(20.0)
        assert results["b"].net_profit == pytest.approx(15.0)
        assert results["d"].net_profit == 0.0
        assert results["d"].cost == pytest.approx(30.0)

    def test_custom_allocation_strategy(self):
        aggregator = LotAggregator(
            allocation=EvenSplitAllocation(redistribute_remainder=True)
        )
        lot = _make_lot(cost=100.0, tax=None)
        items = [_make_item(f"i{n}") for n in range(3)]
        costs = aggregator.allocations([lot], items)
        assert costs == {"i0": 33.33, "i1": 33.33, "i2": 33.34}

    def test_summarize_all(self):
        lots = [_make_lot("lot-1", 100.0, None), _make_lot("lot-2", 50.0, None)]
        items = [
            _make_item("a", 150.0, lot_id="lot-1"),
            _make_item("b", 40.0, lot_id="lot-2"),
        ]
        expenses = [_make_expense("e1", 20.0, ["lot-1", "lot-2"])]
        results = self.aggregator.summarize_all(lots, items, expenses)
        assert results["lot-1"].net_profit == pytest.approx(40.0)
        assert results["lot-2"].net_profit == pytest.approx(-20.0)

    def test_idempotent(self):
        first = self.aggregator.summarize(self.lot, self.items)
        second = self.aggregator.summarize(self.lot, self.items)
        assert first == second
