"""Tests for per-item profit and ROI."""

import pytest
from pallet_ledger.models import Item, ItemStatus
from pallet_ledger.profit import (
    calculate_item_profit,
    calculate_item_profit_from_values,
    calculate_item_roi,
    calculate_item_roi_from_values,
    item_profit_result,
    resolve_item_cost,
)


def _make_item(
    sale_price: float | None = None,
    override_cost: float | None = None,
) -> Item:
    return Item(
        id="item-1",
        lot_id="lot-1",
        sale_price=sale_price,
        override_cost=override_cost,
        status=ItemStatus.SOLD if sale_price is not None else ItemStatus.LISTED,
    )


class TestItemProfit:
    def test_unsold_item_has_zero_profit_and_roi(self):
        item = _make_item()
        assert calculate_item_profit(item, allocated_cost=25.0) == 0.0
        assert calculate_item_roi(item, allocated_cost=25.0) == 0.0

    def test_profit_uses_allocated_cost(self):
        item = _make_item(sale_price=40.0)
        assert calculate_item_profit(item, allocated_cost=25.0) == 15.0

    def test_override_wins_over_allocation(self):
        item = _make_item(sale_price=40.0, override_cost=10.0)
        assert calculate_item_profit(item, allocated_cost=25.0) == 30.0
        assert resolve_item_cost(item, 25.0) == 10.0

    def test_zero_override_still_wins(self):
        item = _make_item(sale_price=40.0, override_cost=0.0)
        assert resolve_item_cost(item, 25.0) == 0.0

    def test_no_cost_information_means_zero_cost(self):
        item = _make_item(sale_price=40.0)
        assert calculate_item_profit(item) == 40.0

    def test_loss(self):
        item = _make_item(sale_price=10.0)
        assert calculate_item_profit(item, allocated_cost=25.0) == -15.0


class TestItemROI:
    def test_roi_percentage(self):
        item = _make_item(sale_price=40.0)
        assert calculate_item_roi(item, allocated_cost=25.0) == pytest.approx(60.0)

    def test_zero_cost_positive_sale_is_100(self):
        assert calculate_item_roi(_make_item(sale_price=5.0)) == 100.0

    def test_zero_cost_zero_sale_is_0(self):
        assert calculate_item_roi(_make_item(sale_price=0.0)) == 0.0

    def test_negative_roi(self):
        item = _make_item(sale_price=10.0)
        assert calculate_item_roi(item, allocated_cost=20.0) == pytest.approx(-50.0)


class TestFromValues:
    def test_matches_item_based_calculation(self):
        assert calculate_item_profit_from_values(50.0, None, 20.0) == 30.0
        assert calculate_item_roi_from_values(50.0, None, 20.0) == pytest.approx(150.0)

    def test_no_sale_price(self):
        assert calculate_item_profit_from_values(None, 10.0, 20.0) == 0.0
        assert calculate_item_roi_from_values(None, 10.0, 20.0) == 0.0

    def test_override_first(self):
        assert calculate_item_profit_from_values(50.0, 5.0, 20.0) == 45.0


class TestProfitResult:
    def test_sold_item(self):
        result = item_profit_result(_make_item(sale_price=40.0), allocated_cost=25.0)
        assert result.revenue == 40.0
        assert result.cost == 25.0
        assert result.net_profit == 15.0
        assert result.roi_percent == pytest.approx(60.0)
        assert result.roi_display == "+60.0%"
        assert result.profit_display == "$15.00"

    def test_unsold_item_reports_cost_only(self):
        result = item_profit_result(_make_item(), allocated_cost=25.0)
        assert result.revenue == 0.0
        assert result.cost == 25.0
        assert result.net_profit == 0.0
        assert result.roi_percent == 0.0

    def test_idempotent(self):
        item = _make_item(sale_price=33.0)
        assert item_profit_result(item, 11.0) == item_profit_result(item, 11.0)
