"""Period reporting.

Rolls lots, items, expenses and trips up into the shapes used by the
analytics dashboard: period summaries, hero metrics, the lot
leaderboard, source/supplier comparisons, profit trends and the P&L.

Every entry point accepts model instances or raw mappings. Malformed
records are skipped with a warning (see ``models.coerce_records``) and
the report is built from the rest.

Item-level profit here is sale price minus override cost (else the
allocated share of the lot cost) minus the platform fee and shipping paid
on the sale. Lot-level figures come from the lot aggregator, which uses the
lot's stated cost and the even share of linked expenses.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from datetime import date, timedelta
from enum import Enum
from typing import Any

from .aging import average_days_to_sell
from .clock import Clock, system_clock
from .expenses import totals_by_category, unlinked_total
from .lots import LotAggregator
from .mileage import summarize_trips
from .models import (
    OPERATING_EXPENSE_CATEGORIES,
    DateRange,
    Expense,
    GroupComparison,
    HeroMetrics,
    Item,
    Lot,
    LotPerformance,
    MileageTrip,
    PeriodSummary,
    PlatformTotal,
    ProfitLossSummary,
    SellingExpenses,
    TrendPoint,
    coerce_records,
)
from .periods import filter_by_date_range
from .profit import resolve_item_cost

logger = logging.getLogger("ledger.reports")

PLATFORM_LABELS: dict[str, str] = {
    "ebay": "eBay",
    "poshmark": "Poshmark",
    "mercari": "Mercari",
    "whatnot": "Whatnot",
    "facebook": "Facebook Marketplace",
    "offerup": "OfferUp",
    "letgo": "Letgo",
    "craigslist": "Craigslist",
    "other": "Other",
}

Records = Iterable[Any] | None


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _sale_date(item: Item) -> date | None:
    return item.sale_date


def _sold_in_range(items: list[Item], date_range: DateRange | None) -> list[Item]:
    sold = [i for i in items if i.has_sale]
    return filter_by_date_range(sold, date_range, _sale_date)


def _item_profit(item: Item, allocations: Mapping[str, float]) -> float:
    cost = resolve_item_cost(item, allocations.get(item.id))
    return (item.sale_price or 0.0) - cost - item.selling_fees


def _pct(numerator: float, denominator: float) -> float:
    return (numerator / denominator) * 100 if denominator > 0 else 0.0


# ---------------------------------------------------------------------------
# Period summary & hero metrics
# ---------------------------------------------------------------------------


def calculate_period_summary(
    items: Records,
    date_range: DateRange | None = None,
    lots: Records = (),
    aggregator: LotAggregator | None = None,
) -> PeriodSummary:
    """Items sold, revenue and profit for sales dated inside the range."""
    aggregator = aggregator or LotAggregator()
    valid_items = coerce_records(Item, items)
    allocations = aggregator.allocations(coerce_records(Lot, lots), valid_items)

    sold = _sold_in_range(valid_items, date_range)
    revenue = sum(i.sale_price for i in sold)
    profit = sum(_item_profit(i, allocations) for i in sold)

    return PeriodSummary(
        items_sold=len(sold),
        revenue=revenue,
        profit=profit,
        average_sale_price=revenue / len(sold) if sold else 0.0,
    )


def calculate_hero_metrics(
    lots: Records,
    items: Records,
    expenses: Records = (),
    date_range: DateRange | None = None,
    aggregator: LotAggregator | None = None,
) -> HeroMetrics:
    """Headline numbers for the analytics screen.

    Profit and cost cover every lot, less the selling fees paid on its
    sold items; the items-sold count honours the date range.
    """
    aggregator = aggregator or LotAggregator()
    valid_items = coerce_records(Item, items)
    summaries = aggregator.summarize_all(lots, valid_items, expenses)
    selling_fees = sum(
        i.selling_fees for i in valid_items if i.has_sale and i.lot_id in summaries
    )

    total_profit = sum(s.net_profit for s in summaries.values()) - selling_fees
    total_cost = sum(s.total_cost for s in summaries.values()) + selling_fees
    active_value = sum(i.estimated_value for i in valid_items if not i.is_sold)

    return HeroMetrics(
        total_profit=total_profit,
        total_cost=total_cost,
        total_items_sold=len(_sold_in_range(valid_items, date_range)),
        average_roi=_pct(total_profit, total_cost),
        active_inventory_value=active_value,
    )


# ---------------------------------------------------------------------------
# Leaderboard & group comparisons
# ---------------------------------------------------------------------------


def calculate_lot_leaderboard(
    lots: Records,
    items: Records,
    expenses: Records = (),
    aggregator: LotAggregator | None = None,
) -> list[LotPerformance]:
    """Per-lot performance, most profitable first."""
    aggregator = aggregator or LotAggregator()
    valid_lots = coerce_records(Lot, lots)
    valid_items = coerce_records(Item, items)
    valid_expenses = coerce_records(Expense, expenses)

    rows: list[LotPerformance] = []
    for lot in valid_lots:
        lot_items = [i for i in valid_items if i.lot_id == lot.id]
        result = aggregator.summarize(lot, lot_items, valid_expenses)
        rows.append(
            LotPerformance(
                lot_id=lot.id,
                name=lot.name,
                source_type=lot.source_type,
                supplier=lot.supplier,
                profit=result.net_profit,
                roi_percent=result.roi_percent,
                total_cost=result.total_cost,
                total_revenue=result.total_revenue,
                item_count=result.total_items_count,
                sold_count=result.sold_items_count,
                average_days_to_sell=average_days_to_sell(lot_items),
                sell_through_rate=_pct(
                    result.sold_items_count, result.total_items_count
                ),
            )
        )

    rows.sort(key=lambda r: r.profit, reverse=True)
    return rows


def _compare_groups(
    lots: Records,
    items: Records,
    expenses: Records,
    key_of: Callable[[Lot], str],
    aggregator: LotAggregator | None,
) -> list[GroupComparison]:
    aggregator = aggregator or LotAggregator()
    valid_lots = coerce_records(Lot, lots)
    valid_items = coerce_records(Item, items)
    valid_expenses = coerce_records(Expense, expenses)

    groups: dict[str, list[Lot]] = defaultdict(list)
    for lot in valid_lots:
        groups[key_of(lot)].append(lot)

    comparisons: list[GroupComparison] = []
    for key, group_lots in groups.items():
        lot_ids = {lot.id for lot in group_lots}
        group_items = [i for i in valid_items if i.lot_id in lot_ids]
        results = [
            aggregator.summarize(lot, group_items, valid_expenses) for lot in group_lots
        ]

        total_profit = sum(r.net_profit for r in results)
        total_cost = sum(r.total_cost for r in results)
        sold = sum(r.sold_items_count for r in results)
        lot_count = len(group_lots)

        comparisons.append(
            GroupComparison(
                key=key,
                lot_count=lot_count,
                total_profit=total_profit,
                total_cost=total_cost,
                average_roi=_pct(total_profit, total_cost),
                average_profit_per_lot=total_profit / lot_count,
                average_items_per_lot=len(group_items) / lot_count,
                total_items_sold=sold,
                average_days_to_sell=average_days_to_sell(group_items),
                sell_through_rate=_pct(sold, len(group_items)),
            )
        )
    return comparisons


def compare_by_source_type(
    lots: Records,
    items: Records,
    expenses: Records = (),
    aggregator: LotAggregator | None = None,
) -> list[GroupComparison]:
    """Group lots by source type, best average ROI first."""
    comparisons = _compare_groups(
        lots, items, expenses, lambda lot: lot.source_type.value, aggregator
    )
    comparisons.sort(key=lambda c: c.average_roi, reverse=True)
    return comparisons


def _supplier_key(lot: Lot) -> str:
    return lot.supplier.strip() if lot.supplier and lot.supplier.strip() else "Unknown"


def compare_by_supplier(
    lots: Records,
    items: Records,
    expenses: Records = (),
    aggregator: LotAggregator | None = None,
) -> list[GroupComparison]:
    """Group lots by supplier, most total profit first."""
    comparisons = _compare_groups(lots, items, expenses, _supplier_key, aggregator)
    comparisons.sort(key=lambda c: c.total_profit, reverse=True)
    return comparisons


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


def _bucket_start(day: date, granularity: Granularity) -> date:
    if granularity == Granularity.DAILY:
        return day
    if granularity == Granularity.WEEKLY:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def calculate_profit_trend(
    items: Records,
    granularity: Granularity | str = Granularity.MONTHLY,
    date_range: DateRange | None = None,
    lots: Records = (),
    aggregator: LotAggregator | None = None,
) -> list[TrendPoint]:
    """Profit and revenue of sold items bucketed by sale date.

    Weekly buckets start on Monday, monthly buckets on the 1st.
    """
    granularity = Granularity(granularity)
    aggregator = aggregator or LotAggregator()
    valid_items = coerce_records(Item, items)
    allocations = aggregator.allocations(coerce_records(Lot, lots), valid_items)

    buckets: dict[date, list[Item]] = defaultdict(list)
    for item in _sold_in_range(valid_items, date_range):
        if item.sale_date is None:
            continue
        buckets[_bucket_start(item.sale_date, granularity)].append(item)

    return [
        TrendPoint(
            period_start=start,
            profit=sum(_item_profit(i, allocations) for i in bucket),
            revenue=sum(i.sale_price for i in bucket),
            items_sold=len(bucket),
        )
        for start, bucket in sorted(buckets.items())
    ]


# ---------------------------------------------------------------------------
# Profit & loss
# ---------------------------------------------------------------------------


def _earliest_date(
    lots: list[Lot],
    items: list[Item],
    expenses: list[Expense],
    trips: list[MileageTrip],
) -> date | None:
    dates: list[date] = [lot.acquisition_date for lot in lots]
    dates += [i.sale_date for i in items if i.sale_date is not None]
    dates += [e.expense_date for e in expenses]
    dates += [t.trip_date for t in trips]
    return min(dates) if dates else None


def _selling_expenses(sold: list[Item]) -> SellingExpenses:
    platform_fees = sum(i.platform_fee or 0.0 for i in sold)
    shipping_costs = sum(i.shipping_cost or 0.0 for i in sold)
    return SellingExpenses(
        platform_fees=platform_fees,
        shipping_costs=shipping_costs,
        total=platform_fees + shipping_costs,
    )


def _platform_breakdown(sold: list[Item]) -> list[PlatformTotal]:
    """Sales, platform fees and count per platform, biggest sales first."""
    sales: dict[str, float] = defaultdict(float)
    fees: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for item in sold:
        platform = item.platform or "other"
        sales[platform] += item.sale_price or 0.0
        fees[platform] += item.platform_fee or 0.0
        counts[platform] += 1

    rows = [
        PlatformTotal(
            platform=platform,
            label=PLATFORM_LABELS.get(platform, platform),
            sales=sales[platform],
            fees=fees[platform],
            count=counts[platform],
        )
        for platform in sales
    ]
    rows.sort(key=lambda r: r.sales, reverse=True)
    return rows


def calculate_profit_loss(
    lots: Records,
    items: Records,
    expenses: Records = (),
    trips: Records = (),
    date_range: DateRange | None = None,
    clock: Clock = system_clock,
    aggregator: LotAggregator | None = None,
) -> ProfitLossSummary:
    """Profit and loss for a period.

    Revenue and cost of goods sold are accrual based: only items sold in
    the period count, at their override or allocated cost. Selling
    expenses (platform fees and shipping) follow the sold items. Operating
    expenses and mileage are filtered by their own dates.
    """
    aggregator = aggregator or LotAggregator()
    valid_lots = coerce_records(Lot, lots)
    valid_items = coerce_records(Item, items)
    valid_expenses = coerce_records(Expense, expenses)
    valid_trips = coerce_records(MileageTrip, trips)

    allocations = aggregator.allocations(valid_lots, valid_items)
    sold = _sold_in_range(valid_items, date_range)
    period_expenses = filter_by_date_range(
        valid_expenses, date_range, lambda e: e.expense_date
    )
    period_trips = filter_by_date_range(valid_trips, date_range, lambda t: t.trip_date)

    gross_sales = sum(i.sale_price for i in sold)
    cogs = sum(resolve_item_cost(i, allocations.get(i.id)) for i in sold)
    gross_profit = gross_sales - cogs

    selling = _selling_expenses(sold)
    operating = totals_by_category(period_expenses, OPERATING_EXPENSE_CATEGORIES)
    total_operating = sum(c.amount for c in operating)
    mileage = summarize_trips(period_trips)
    total_expenses = selling.total + total_operating + mileage.total_deduction
    net_profit = gross_profit - total_expenses

    if date_range is not None and date_range.start is not None:
        period_start = date_range.start
    else:
        period_start = _earliest_date(valid_lots, sold, period_expenses, period_trips)
    if date_range is not None and date_range.end is not None:
        period_end = date_range.end
    else:
        period_end = clock()

    summary = ProfitLossSummary(
        period_start=period_start,
        period_end=period_end,
        gross_sales=gross_sales,
        items_sold=len(sold),
        average_sale_price=gross_sales / len(sold) if sold else 0.0,
        cost_of_goods_sold=cogs,
        gross_profit=gross_profit,
        gross_margin=_pct(gross_profit, gross_sales),
        selling_expenses=selling,
        platform_breakdown=_platform_breakdown(sold),
        operating_expenses=operating,
        total_operating_expenses=total_operating,
        unlinked_expenses=unlinked_total(period_expenses),
        mileage=mileage,
        total_expenses=total_expenses,
        net_profit=net_profit,
        net_margin=_pct(net_profit, gross_sales),
    )

    logger.info(
        "P&L %s..%s: sales $%.2f, COGS $%.2f, expenses $%.2f, net $%.2f",
        period_start,
        period_end,
        gross_sales,
        cogs,
        total_expenses,
        net_profit,
    )
    return summary
