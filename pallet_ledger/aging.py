"""Aging and staleness.

An unsold item is stale once it has been listed for ``threshold_days``
or more. Items never listed are never stale. Sell-through timing
(days to sell) is only defined for sold items with both a listing and a
sale date; ``average_days_to_sell`` returns None rather than 0 when no
item qualifies, so "no data" stays distinguishable from "sold same day".
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .clock import Clock, system_clock
from .config import get_settings
from .models import Item, Lot, StaleItem, coerce_records

logger = logging.getLogger("ledger.aging")


def days_since_listed(item: Item, clock: Clock = system_clock) -> int | None:
    """Whole days since listing; 0 for an item listed today."""
    if item.listing_date is None:
        return None
    return (clock() - item.listing_date).days


def is_stale(
    item: Item,
    threshold_days: int | None = None,
    clock: Clock = system_clock,
) -> bool:
    if threshold_days is None:
        threshold_days = get_settings().stale_threshold_days
    if item.is_sold:
        return False
    days = days_since_listed(item, clock)
    if days is None:
        return False
    return days >= threshold_days


def days_to_sell(item: Item) -> int | None:
    if not item.is_sold or item.listing_date is None or item.sale_date is None:
        return None
    return (item.sale_date - item.listing_date).days


def average_days_to_sell(items: Iterable[Item | Mapping[str, Any]]) -> float | None:
    """Mean days to sell over qualifying sold items, or None."""
    durations = [
        d for d in (days_to_sell(i) for i in coerce_records(Item, items)) if d is not None
    ]
    if not durations:
        return None
    return sum(durations) / len(durations)


def sell_through_rate(items: Iterable[Item | Mapping[str, Any]]) -> float:
    """Percentage of items sold. 0 when there are no items."""
    valid = coerce_records(Item, items)
    if not valid:
        return 0.0
    sold = sum(1 for i in valid if i.is_sold)
    return sold / len(valid) * 100


def stale_items(
    items: Iterable[Item | Mapping[str, Any]],
    lots: Iterable[Lot | Mapping[str, Any]] = (),
    threshold_days: int | None = None,
    clock: Clock = system_clock,
) -> list[StaleItem]:
    """Items needing attention, longest-listed first."""
    lot_names = {lot.id: lot.name for lot in coerce_records(Lot, lots)}

    stale: list[StaleItem] = []
    for item in coerce_records(Item, items):
        if not is_stale(item, threshold_days, clock):
            continue
        stale.append(
            StaleItem(
                item_id=item.id,
                name=item.name,
                lot_id=item.lot_id,
                lot_name=lot_names.get(item.lot_id),
                days_listed=days_since_listed(item, clock) or 0,
                listing_price=item.listing_price,
            )
        )

    stale.sort(key=lambda s: s.days_listed, reverse=True)
    logger.debug("Found %d stale item(s)", len(stale))
    return stale
