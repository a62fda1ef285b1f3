"""Expense Splitter.

A shared expense linked to K lots contributes ``amount / K`` to each of
them, regardless of what the lots cost. An expense linked to no lot
contributes to none; it only shows up in the unlinked total.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from .models import CategoryTotal, Expense, ExpenseCategory

logger = logging.getLogger("ledger.expenses")


class ExpenseSplitter:
    """Even split of an expense across its linked lots.

    Subclass and override ``split`` for another policy; the lot
    aggregator only ever calls ``share_for_lot``.
    """

    def split(self, expense: Expense) -> dict[str, float]:
        """Lot id -> share of the expense. Empty when unlinked."""
        lot_count = len(expense.linked_lot_ids)
        if lot_count == 0:
            return {}
        share = expense.amount / lot_count
        return {lot_id: share for lot_id in sorted(expense.linked_lot_ids)}

    def share_for_lot(self, expense: Expense, lot_id: str) -> float:
        return self.split(expense).get(lot_id, 0.0)

    def expense_total_for_lot(self, expenses: Iterable[Expense], lot_id: str) -> float:
        """Sum of this lot's shares across all expenses."""
        return sum(self.share_for_lot(e, lot_id) for e in expenses)

    def totals_by_lot(self, expenses: Iterable[Expense]) -> dict[str, float]:
        totals: dict[str, float] = defaultdict(float)
        count = 0
        for expense in expenses:
            count += 1
            for lot_id, share in self.split(expense).items():
                totals[lot_id] += share
        logger.debug("Split %d expense(s) across %d lot(s)", count, len(totals))
        return dict(totals)


DEFAULT_SPLITTER = ExpenseSplitter()


def unlinked_total(expenses: Iterable[Expense]) -> float:
    """Total of expenses not linked to any lot."""
    return sum(e.amount for e in expenses if not e.is_linked)


def expenses_for_lot(expenses: Iterable[Expense], lot_id: str) -> list[Expense]:
    return [e for e in expenses if lot_id in e.linked_lot_ids]


def totals_by_category(
    expenses: Iterable[Expense],
    categories: Iterable[ExpenseCategory] | None = None,
) -> list[CategoryTotal]:
    """Amount and count per category, in category order, zero rows dropped.

    Args:
        expenses: Expenses to total.
        categories: Categories to report. Defaults to every category.
    """
    wanted = list(categories) if categories is not None else list(ExpenseCategory)
    amounts: dict[ExpenseCategory, float] = defaultdict(float)
    counts: dict[ExpenseCategory, int] = defaultdict(int)

    for expense in expenses:
        if expense.category in wanted:
            amounts[expense.category] += expense.amount
            counts[expense.category] += 1

    return [
        CategoryTotal(
            category=category,
            label=category.label,
            amount=amounts[category],
            count=counts[category],
        )
        for category in wanted
        if amounts[category] > 0
    ]
