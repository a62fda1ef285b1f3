"""Cost Allocator.

Splits a lot's combined acquisition cost (purchase price + tax) across
its items. The split policy is a strategy object so alternatives can be
plugged in without touching callers:

- EvenSplitAllocation: every eligible item gets the same share. With the
  default float policy the shares may miss the total by a rounding
  epsilon; nothing is redistributed. ``redistribute_remainder=True``
  rounds shares to whole cents and puts the leftover cents on the last
  eligible item, so the shares sum exactly to the total.
- RetailWeightedAllocation: eligible items share the total in proportion
  to their retail price.

An item is eligible when it is sellable, or when ``include_unsellable``
is set. Ineligible items always get 0.

Usage:
    allocated = allocate_costs(lot, items)
    for entry in allocated:
        print(entry.item.id, entry.allocated_cost)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from .models import AllocatedItem, Item, Lot

logger = logging.getLogger("ledger.allocation")

_CENT = Decimal("0.01")


def _is_eligible(item: Item, include_unsellable: bool) -> bool:
    return include_unsellable or item.sellable


class AllocationStrategy(ABC):
    """Policy for dividing a total cost among a lot's items."""

    name: str = "base"

    @abstractmethod
    def shares(
        self,
        total: float,
        items: Sequence[Item],
        include_unsellable: bool,
    ) -> list[float]:
        """Return one share per item, in input order."""


class EvenSplitAllocation(AllocationStrategy):
    """Equal shares across eligible items."""

    name = "even"

    def __init__(self, redistribute_remainder: bool = False):
        self.redistribute_remainder = redistribute_remainder

    def shares(
        self,
        total: float,
        items: Sequence[Item],
        include_unsellable: bool,
    ) -> list[float]:
        eligible = [_is_eligible(i, include_unsellable) for i in items]
        eligible_count = sum(eligible)
        if eligible_count == 0:
            return [0.0] * len(items)

        if self.redistribute_remainder:
            return self._cent_shares(total, eligible, eligible_count)

        per_share = total / eligible_count
        return [per_share if ok else 0.0 for ok in eligible]

    @staticmethod
    def _cent_shares(
        total: float,
        eligible: list[bool],
        eligible_count: int,
    ) -> list[float]:
        total_cents = Decimal(str(total)).quantize(_CENT, rounding=ROUND_HALF_UP)
        per_share = (total_cents / eligible_count).quantize(
            _CENT, rounding=ROUND_HALF_UP
        )
        remainder = total_cents - per_share * eligible_count
        last_index = max(i for i, ok in enumerate(eligible) if ok)

        result: list[float] = []
        for index, ok in enumerate(eligible):
            if not ok:
                result.append(0.0)
            elif index == last_index:
                result.append(float(per_share + remainder))
            else:
                result.append(float(per_share))
        return result


class RetailWeightedAllocation(AllocationStrategy):
    """Shares proportional to retail price among eligible items.

    Falls back to an even split when no eligible item has a retail price.
    """

    name = "retail_weighted"

    def shares(
        self,
        total: float,
        items: Sequence[Item],
        include_unsellable: bool,
    ) -> list[float]:
        weights = [
            (item.retail_price or 0.0) if _is_eligible(item, include_unsellable) else 0.0
            for item in items
        ]
        weight_total = sum(weights)
        if weight_total <= 0:
            return EvenSplitAllocation().shares(total, items, include_unsellable)
        return [total * w / weight_total for w in weights]


DEFAULT_STRATEGY: AllocationStrategy = EvenSplitAllocation()


def allocate_costs(
    lot: Lot,
    items: Sequence[Item],
    include_unsellable: bool = False,
    strategy: AllocationStrategy | None = None,
) -> list[AllocatedItem]:
    """Allocate the lot's acquisition cost and tax across its items.

    Args:
        lot: The lot whose cost is being shared.
        items: Items belonging to the lot. Order is preserved.
        include_unsellable: Give unsellable items a share too.
        strategy: Allocation policy. Defaults to an even split.

    Returns:
        One AllocatedItem per input item. Empty input gives an empty list.
    """
    if not items:
        return []

    strategy = strategy or DEFAULT_STRATEGY
    shares = strategy.shares(lot.combined_cost, items, include_unsellable)

    logger.debug(
        "Allocated %.2f across %d item(s) of lot %s using %s",
        lot.combined_cost,
        len(items),
        lot.id,
        strategy.name,
    )

    return [
        AllocatedItem(item=item, allocated_cost=share)
        for item, share in zip(items, shares)
    ]


def allocation_map(
    lot: Lot,
    items: Sequence[Item],
    include_unsellable: bool = False,
    strategy: AllocationStrategy | None = None,
) -> dict[str, float]:
    """Item id -> allocated cost for the lot's items."""
    return {
        entry.item.id: entry.allocated_cost
        for entry in allocate_costs(lot, items, include_unsellable, strategy)
    }


def estimate_allocated_cost(
    acquisition_cost: float,
    tax_amount: float | None,
    total_items: int,
    include_unsellable: bool = False,
    unsellable_count: int = 0,
) -> float:
    """Preview one item's share before the item is saved."""
    total_cost = acquisition_cost + (tax_amount or 0.0)
    divisor = total_items if include_unsellable else total_items - unsellable_count
    if divisor <= 0:
        return 0.0
    return total_cost / divisor
