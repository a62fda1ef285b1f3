"""Pallet Ledger: profit and deduction engine for resale inventory.

Turns lot acquisition costs, shared expenses, mileage logs and item sale
records into per-item and per-lot profit, ROI and unsold valuation, and
rolls them up for period reports. The engine is pure: no I/O, no cached
state, and "today" is always an explicit clock argument.

Usage:
    from pallet_ledger import LotAggregator, allocate_costs, ytd_summary

    aggregator = LotAggregator()
    result = aggregator.summarize(lot, items, expenses)
    print(result.net_profit, result.roi_percent)

    print(ytd_summary(trips, clock=fixed_clock(date(2026, 6, 1))).total_deduction)
"""

from .aging import (
    average_days_to_sell,
    days_since_listed,
    days_to_sell,
    is_stale,
    sell_through_rate,
    stale_items,
)
from .allocation import (
    AllocationStrategy,
    EvenSplitAllocation,
    RetailWeightedAllocation,
    allocate_costs,
    allocation_map,
    estimate_allocated_cost,
)
from .clock import Clock, fixed_clock, system_clock, zone_clock
from .config import LedgerSettings, get_settings
from .expenses import (
    ExpenseSplitter,
    expenses_for_lot,
    totals_by_category,
    unlinked_total,
)
from .lots import (
    LotAggregator,
    calculate_lot_net_profit,
    calculate_lot_profit,
    calculate_lot_roi,
    lot_profit_result,
)
from .mileage import (
    estimate_deduction,
    summarize_trips,
    summary_for_lot,
    trip_deduction,
    ytd_summary,
)
from .models import (
    AllocatedItem,
    DatePreset,
    DateRange,
    DeductionResult,
    Expense,
    ExpenseCategory,
    GroupComparison,
    HeroMetrics,
    Item,
    ItemStatus,
    Lot,
    LotPerformance,
    LotProfitResult,
    LotStatus,
    MileageTrip,
    PeriodSummary,
    PlatformTotal,
    ProfitLossSummary,
    ProfitResult,
    SellingExpenses,
    Snapshot,
    SourceType,
    StaleItem,
    TrendPoint,
    coerce_records,
)
from .periods import (
    describe_range,
    filter_by_date_range,
    get_date_range_from_preset,
    in_range,
    quarter_bounds,
    quarter_of,
)
from .profit import (
    calculate_item_profit,
    calculate_item_profit_from_values,
    calculate_item_roi,
    calculate_item_roi_from_values,
    item_profit_result,
    resolve_item_cost,
)
from .reports import (
    Granularity,
    calculate_hero_metrics,
    calculate_lot_leaderboard,
    calculate_period_summary,
    calculate_profit_loss,
    calculate_profit_trend,
    compare_by_source_type,
    compare_by_supplier,
)

__all__ = [
    # Models
    "AllocatedItem",
    "DatePreset",
    "DateRange",
    "DeductionResult",
    "Expense",
    "ExpenseCategory",
    "GroupComparison",
    "HeroMetrics",
    "Item",
    "ItemStatus",
    "Lot",
    "LotPerformance",
    "LotProfitResult",
    "LotStatus",
    "MileageTrip",
    "PeriodSummary",
    "PlatformTotal",
    "ProfitLossSummary",
    "ProfitResult",
    "SellingExpenses",
    "Snapshot",
    "SourceType",
    "StaleItem",
    "TrendPoint",
    "coerce_records",
    # Clock & config
    "Clock",
    "fixed_clock",
    "system_clock",
    "zone_clock",
    "LedgerSettings",
    "get_settings",
    # Allocation
    "AllocationStrategy",
    "EvenSplitAllocation",
    "RetailWeightedAllocation",
    "allocate_costs",
    "allocation_map",
    "estimate_allocated_cost",
    # Item profit
    "calculate_item_profit",
    "calculate_item_profit_from_values",
    "calculate_item_roi",
    "calculate_item_roi_from_values",
    "item_profit_result",
    "resolve_item_cost",
    # Expenses
    "ExpenseSplitter",
    "expenses_for_lot",
    "totals_by_category",
    "unlinked_total",
    # Lots
    "LotAggregator",
    "calculate_lot_net_profit",
    "calculate_lot_profit",
    "calculate_lot_roi",
    "lot_profit_result",
    # Mileage
    "estimate_deduction",
    "summarize_trips",
    "summary_for_lot",
    "trip_deduction",
    "ytd_summary",
    # Aging
    "average_days_to_sell",
    "days_since_listed",
    "days_to_sell",
    "is_stale",
    "sell_through_rate",
    "stale_items",
    # Periods & reports
    "describe_range",
    "filter_by_date_range",
    "get_date_range_from_preset",
    "in_range",
    "quarter_bounds",
    "quarter_of",
    "Granularity",
    "calculate_hero_metrics",
    "calculate_lot_leaderboard",
    "calculate_period_summary",
    "calculate_profit_loss",
    "calculate_profit_trend",
    "compare_by_source_type",
    "compare_by_supplier",
]
