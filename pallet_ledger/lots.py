"""Lot Aggregator.

Combines a lot's items and its linked expenses into lot-level revenue,
cost, profit, ROI and unsold valuation.

Key rules:
- Revenue is the sum of sale prices over items sold with a sale price.
- Item cost is the lot's own stated acquisition cost plus tax. It is
  never re-derived from per-item allocations, which would double-count
  rounding and ignore unsellable items.
- Each linked expense contributes its even share (see ExpenseSplitter).
- ROI = net profit / total cost × 100. With zero cost, ROI is 100 for a
  positive profit and 0 otherwise.
- Unsold value uses listing price, then retail price, then 0.
- No lot yet (``None``) gives an all-zero result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .allocation import AllocationStrategy, allocate_costs
from .config import get_settings
from .expenses import DEFAULT_SPLITTER, ExpenseSplitter
from .models import (
    AllocatedItem,
    Expense,
    Item,
    Lot,
    LotProfitResult,
    ProfitResult,
    coerce_records,
)
from .profit import item_profit_result

logger = logging.getLogger("ledger.lots")


def _lot_roi(net_profit: float, total_cost: float) -> float:
    if total_cost > 0:
        return (net_profit / total_cost) * 100
    return 100.0 if net_profit > 0 else 0.0


def calculate_lot_profit(
    lot: Lot | None,
    items: Iterable[Item | Mapping[str, Any]],
    expenses: Iterable[Expense | Mapping[str, Any]] = (),
    splitter: ExpenseSplitter | None = None,
) -> LotProfitResult:
    """Lot-level financials.

    Args:
        lot: The lot, or None when there is nothing recorded yet.
        items: The lot's items. Items of other lots are ignored.
        expenses: Expenses to consider. Only this lot's share of each
            linked expense is counted.
        splitter: Expense split policy. Defaults to an even split.

    Returns:
        LotProfitResult. Never raises for missing optional fields.
    """
    if lot is None:
        return LotProfitResult()

    splitter = splitter or DEFAULT_SPLITTER
    lot_items = [i for i in coerce_records(Item, items) if i.lot_id == lot.id]
    valid_expenses = coerce_records(Expense, expenses)

    sold = [i for i in lot_items if i.has_sale]
    unsold = [i for i in lot_items if not i.is_sold]

    total_revenue = sum(i.sale_price for i in sold)
    tax_amount = lot.tax_amount or 0.0
    item_cost = lot.acquisition_cost + tax_amount
    expense_total = splitter.expense_total_for_lot(valid_expenses, lot.id)
    total_cost = item_cost + expense_total
    net_profit = total_revenue - total_cost

    return LotProfitResult(
        total_revenue=total_revenue,
        acquisition_cost=lot.acquisition_cost,
        tax_amount=tax_amount,
        item_cost=item_cost,
        expense_total=expense_total,
        total_cost=total_cost,
        net_profit=net_profit,
        roi_percent=_lot_roi(net_profit, total_cost),
        sold_items_count=len(sold),
        unsold_items_count=len(unsold),
        total_items_count=len(lot_items),
        unsold_value=sum(i.estimated_value for i in unsold),
    )


def calculate_lot_net_profit(
    lot: Lot | None,
    items: Iterable[Item | Mapping[str, Any]],
    expenses: Iterable[Expense | Mapping[str, Any]] = (),
) -> float:
    return calculate_lot_profit(lot, items, expenses).net_profit


def calculate_lot_roi(
    lot: Lot | None,
    items: Iterable[Item | Mapping[str, Any]],
    expenses: Iterable[Expense | Mapping[str, Any]] = (),
) -> float:
    return calculate_lot_profit(lot, items, expenses).roi_percent


def lot_profit_result(
    lot: Lot | None,
    items: Iterable[Item | Mapping[str, Any]],
    expenses: Iterable[Expense | Mapping[str, Any]] = (),
) -> ProfitResult:
    """Lot financials in the common ProfitResult shape."""
    return calculate_lot_profit(lot, items, expenses).as_profit_result()


class LotAggregator:
    """Lot and item profit with fixed allocation and split policies.

    Usage:
        aggregator = LotAggregator()
        summary = aggregator.summarize(lot, items, expenses)
        print(f"{lot.name}: {summary.as_profit_result().profit_display}")
    """

    def __init__(
        self,
        include_unsellable: bool | None = None,
        allocation: AllocationStrategy | None = None,
        splitter: ExpenseSplitter | None = None,
    ):
        if include_unsellable is None:
            include_unsellable = get_settings().include_unsellable
        self.include_unsellable = include_unsellable
        self.allocation = allocation
        self.splitter = splitter or DEFAULT_SPLITTER

    def allocate(self, lot: Lot, items: Sequence[Item]) -> list[AllocatedItem]:
        lot_items = [i for i in items if i.lot_id == lot.id]
        return allocate_costs(lot, lot_items, self.include_unsellable, self.allocation)

    def allocations(
        self,
        lots: Iterable[Lot],
        items: Sequence[Item],
    ) -> dict[str, float]:
        """Item id -> allocated cost, across many lots."""
        result: dict[str, float] = {}
        for lot in lots:
            for entry in self.allocate(lot, items):
                result[entry.item.id] = entry.allocated_cost
        return result

    def item_results(
        self,
        lot: Lot,
        items: Iterable[Item | Mapping[str, Any]],
    ) -> dict[str, ProfitResult]:
        """Item id -> ProfitResult, using this aggregator's allocation."""
        valid = coerce_records(Item, items)
        return {
            entry.item.id: item_profit_result(entry.item, entry.allocated_cost)
            for entry in self.allocate(lot, valid)
        }

    def summarize(
        self,
        lot: Lot | None,
        items: Iterable[Item | Mapping[str, Any]],
        expenses: Iterable[Expense | Mapping[str, Any]] = (),
    ) -> LotProfitResult:
        return calculate_lot_profit(lot, items, expenses, self.splitter)

    def summarize_all(
        self,
        lots: Iterable[Lot | Mapping[str, Any]],
        items: Iterable[Item | Mapping[str, Any]],
        expenses: Iterable[Expense | Mapping[str, Any]] = (),
    ) -> dict[str, LotProfitResult]:
        """Lot id -> LotProfitResult for every valid lot."""
        valid_lots = coerce_records(Lot, lots)
        valid_items = coerce_records(Item, items)
        valid_expenses = coerce_records(Expense, expenses)

        results = {
            lot.id: self.summarize(lot, valid_items, valid_expenses)
            for lot in valid_lots
        }
        logger.info(
            "Summarized %d lot(s): net profit $%.2f",
            len(results),
            sum(r.net_profit for r in results.values()),
        )
        return results
