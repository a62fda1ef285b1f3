"""Item Profit Calculator.

Per-item profit and ROI from the sale price and the item's cost. The
cost is the manual override when one is set, otherwise the allocated
share of the lot cost, otherwise 0. An item without a sale price has
profit 0 and ROI 0.
"""

from __future__ import annotations

from .models import Item, ProfitResult


def resolve_item_cost(item: Item, allocated_cost: float | None = None) -> float:
    """override_cost, else allocated_cost, else 0."""
    if item.override_cost is not None:
        return item.override_cost
    if allocated_cost is not None:
        return allocated_cost
    return 0.0


def _roi(sale_price: float, cost: float) -> float:
    if cost == 0:
        return 100.0 if sale_price > 0 else 0.0
    return ((sale_price - cost) / cost) * 100


def calculate_item_profit_from_values(
    sale_price: float | None,
    override_cost: float | None = None,
    allocated_cost: float | None = None,
) -> float:
    """Profit from raw values, e.g. while an item form is being edited."""
    if sale_price is None:
        return 0.0
    cost = override_cost if override_cost is not None else allocated_cost or 0.0
    return sale_price - cost


def calculate_item_roi_from_values(
    sale_price: float | None,
    override_cost: float | None = None,
    allocated_cost: float | None = None,
) -> float:
    if sale_price is None:
        return 0.0
    cost = override_cost if override_cost is not None else allocated_cost or 0.0
    return _roi(sale_price, cost)


def calculate_item_profit(item: Item, allocated_cost: float | None = None) -> float:
    return calculate_item_profit_from_values(
        item.sale_price, item.override_cost, allocated_cost
    )


def calculate_item_roi(item: Item, allocated_cost: float | None = None) -> float:
    """ROI as a percentage (50.0 means 50%)."""
    return calculate_item_roi_from_values(
        item.sale_price, item.override_cost, allocated_cost
    )


def item_profit_result(item: Item, allocated_cost: float | None = None) -> ProfitResult:
    """Revenue, cost, profit and ROI for a single item."""
    if item.sale_price is None:
        return ProfitResult(cost=resolve_item_cost(item, allocated_cost))

    cost = resolve_item_cost(item, allocated_cost)
    return ProfitResult(
        revenue=item.sale_price,
        cost=cost,
        net_profit=item.sale_price - cost,
        roi_percent=_roi(item.sale_price, cost),
    )
