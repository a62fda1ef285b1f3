"""Pydantic models for the resale ledger.

Lots, items, expenses and mileage trips arrive as immutable snapshots
from the data-access layer. Everything else in this module is derived:
profit results, deduction summaries, and the report shapes consumed by
the dashboard and export screens.

All dollar amounts are floats. Non-finite values and negative amounts
are rejected at construction, so a record that validates here is safe
to aggregate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger("ledger.models")

Money = float


class _Snapshot(BaseModel):
    """Base for inbound records: frozen, finite numbers only."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


class _Derived(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class LotStatus(str, Enum):
    UNPROCESSED = "unprocessed"
    PROCESSING = "processing"
    COMPLETED = "completed"


class SourceType(str, Enum):
    """Where a lot was sourced from."""

    PALLET = "pallet"
    THRIFT = "thrift"
    GARAGE_SALE = "garage_sale"
    RETAIL_ARBITRAGE = "retail_arbitrage"
    MYSTERY_BOX = "mystery_box"
    OTHER = "other"

    @property
    def label(self) -> str:
        return {
            SourceType.PALLET: "Pallet",
            SourceType.THRIFT: "Thrift Store",
            SourceType.GARAGE_SALE: "Garage Sale",
            SourceType.RETAIL_ARBITRAGE: "Retail Arbitrage",
            SourceType.MYSTERY_BOX: "Mystery Box",
            SourceType.OTHER: "Other",
        }[self]


class ItemStatus(str, Enum):
    UNLISTED = "unlisted"
    LISTED = "listed"
    SOLD = "sold"


class ExpenseCategory(str, Enum):
    SUPPLIES = "supplies"
    GAS = "gas"
    MILEAGE = "mileage"
    STORAGE = "storage"
    FEES = "fees"
    SHIPPING = "shipping"
    SUBSCRIPTIONS = "subscriptions"
    EQUIPMENT = "equipment"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# Categories reported as overhead on the P&L. Gas, mileage, fees and
# shipping are legacy categories tracked elsewhere.
OPERATING_EXPENSE_CATEGORIES: tuple[ExpenseCategory, ...] = (
    ExpenseCategory.SUPPLIES,
    ExpenseCategory.STORAGE,
    ExpenseCategory.SUBSCRIPTIONS,
    ExpenseCategory.EQUIPMENT,
    ExpenseCategory.OTHER,
)


# ---------------------------------------------------------------------------
# Inbound snapshots
# ---------------------------------------------------------------------------


class Lot(_Snapshot):
    """A purchased batch of inventory (a pallet, a thrift haul, ...)."""

    id: str
    name: str = ""
    acquisition_cost: Money = Field(ge=0)
    tax_amount: Money | None = Field(default=None, ge=0)
    acquisition_date: date
    status: LotStatus = LotStatus.UNPROCESSED
    source_type: SourceType = SourceType.PALLET
    supplier: str | None = None

    @property
    def combined_cost(self) -> float:
        """Acquisition cost plus tax, the amount shared across items."""
        return self.acquisition_cost + (self.tax_amount or 0.0)


class Item(_Snapshot):
    """A single unit of inventory belonging to exactly one lot.

    Allocated cost is never stored here; see ``allocation.allocate_costs``.
    """

    id: str
    lot_id: str
    name: str = ""
    retail_price: Money | None = Field(default=None, ge=0)
    listing_price: Money | None = Field(default=None, ge=0)
    sale_price: Money | None = Field(default=None, ge=0)
    override_cost: Money | None = Field(default=None, ge=0)
    sellable: bool = True
    listing_date: date | None = None
    sale_date: date | None = None
    status: ItemStatus = ItemStatus.UNLISTED
    platform: str | None = None
    platform_fee: Money | None = Field(default=None, ge=0)
    shipping_cost: Money | None = Field(default=None, ge=0)

    @property
    def is_sold(self) -> bool:
        return self.status == ItemStatus.SOLD

    @property
    def selling_fees(self) -> float:
        """Platform fee plus shipping paid on the sale."""
        return (self.platform_fee or 0.0) + (self.shipping_cost or 0.0)

    @property
    def has_sale(self) -> bool:
        """Sold with a recorded sale price. Only these count as revenue."""
        return self.is_sold and self.sale_price is not None

    @property
    def estimated_value(self) -> float:
        """Listing price, else retail price, else 0."""
        if self.listing_price is not None:
            return self.listing_price
        if self.retail_price is not None:
            return self.retail_price
        return 0.0


class _LotLinked(_Snapshot):
    """Records that can be linked to any number of lots."""

    linked_lot_ids: frozenset[str] = Field(default_factory=frozenset)

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy_lot_id(cls, data: Any) -> Any:
        # Older rows carry a single lot_id instead of a set.
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        legacy = data.pop("lot_id", None)
        if not data.get("linked_lot_ids"):
            data["linked_lot_ids"] = [legacy] if legacy else []
        return data

    @property
    def is_linked(self) -> bool:
        return bool(self.linked_lot_ids)


class Expense(_LotLinked):
    """A business expense, optionally shared by several lots."""

    id: str
    amount: Money = Field(ge=0)
    category: ExpenseCategory = ExpenseCategory.OTHER
    expense_date: date
    description: str | None = None


class MileageTrip(_LotLinked):
    """A logged trip. The rate is captured when the trip is recorded."""

    id: str
    trip_date: date
    miles: float = Field(ge=0)
    rate_per_mile: Money = Field(ge=0)
    purpose: str | None = None

    @property
    def deduction(self) -> float:
        return self.miles * self.rate_per_mile


class DatePreset(str, Enum):
    ALL = "all"
    CUSTOM = "custom"
    THIS_MONTH = "this_month"
    Q1 = "q1"
    Q2 = "q2"
    Q3 = "q3"
    Q4 = "q4"
    THIS_QUARTER = "this_quarter"
    LAST_QUARTER = "last_quarter"
    THIS_YEAR = "this_year"
    LAST_YEAR = "last_year"


class DateRange(_Snapshot):
    """Inclusive date window. A ``None`` bound is unbounded on that side."""

    start: date | None = None
    end: date | None = None
    preset: DatePreset = DatePreset.CUSTOM

    @model_validator(mode="after")
    def check_order(self) -> DateRange:
        if self.start and self.end and self.start > self.end:
            raise ValueError(
                f"DateRange start {self.start.isoformat()} is after "
                f"end {self.end.isoformat()}"
            )
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


class Snapshot(BaseModel):
    """A full export of the user's records, as read by the CLI.

    Records stay as raw JSON values so that one malformed row (a bad
    field, or a null or a string where an object belongs) is skipped by
    the aggregators instead of rejecting the whole document.
    """

    lots: list[Any] = Field(default_factory=list)
    items: list[Any] = Field(default_factory=list)
    expenses: list[Any] = Field(default_factory=list)
    trips: list[Any] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


class AllocatedItem(_Derived):
    """An item paired with its computed share of the lot cost."""

    item: Item
    allocated_cost: float


class ProfitResult(_Derived):
    """Item- or lot-scoped profit."""

    revenue: float = 0.0
    cost: float = 0.0
    net_profit: float = 0.0
    roi_percent: float = 0.0

    @property
    def profit_display(self) -> str:
        sign = "-" if self.net_profit < 0 else ""
        return f"{sign}${abs(self.net_profit):,.2f}"

    @property
    def roi_display(self) -> str:
        sign = "+" if self.roi_percent >= 0 else ""
        return f"{sign}{self.roi_percent:.1f}%"


class LotProfitResult(_Derived):
    """Lot-level financials. All zeros means "no data yet"."""

    total_revenue: float = 0.0
    acquisition_cost: float = 0.0
    tax_amount: float = 0.0
    item_cost: float = 0.0
    expense_total: float = 0.0
    total_cost: float = 0.0
    net_profit: float = 0.0
    roi_percent: float = 0.0
    sold_items_count: int = 0
    unsold_items_count: int = 0
    total_items_count: int = 0
    unsold_value: float = 0.0

    def as_profit_result(self) -> ProfitResult:
        return ProfitResult(
            revenue=self.total_revenue,
            cost=self.total_cost,
            net_profit=self.net_profit,
            roi_percent=self.roi_percent,
        )


class DeductionResult(_Derived):
    total_miles: float = 0.0
    total_deduction: float = 0.0
    trip_count: int = 0
    average_rate: float = 0.0

    @property
    def deduction_display(self) -> str:
        return f"${self.total_deduction:,.2f}"


class StaleItem(_Derived):
    """An unsold item that has sat listed past the threshold."""

    item_id: str
    name: str
    lot_id: str
    lot_name: str | None = None
    days_listed: int
    listing_price: float | None = None


class LotPerformance(_Derived):
    """One row of the lot leaderboard."""

    lot_id: str
    name: str
    source_type: SourceType
    supplier: str | None = None
    profit: float
    roi_percent: float
    total_cost: float
    total_revenue: float
    item_count: int
    sold_count: int
    average_days_to_sell: float | None = None
    sell_through_rate: float = 0.0


class GroupComparison(_Derived):
    """Lots grouped by a shared attribute (source type, supplier)."""

    key: str
    lot_count: int
    total_profit: float
    total_cost: float
    average_roi: float
    average_profit_per_lot: float
    average_items_per_lot: float
    total_items_sold: int
    average_days_to_sell: float | None = None
    sell_through_rate: float = 0.0


class PeriodSummary(_Derived):
    items_sold: int = 0
    revenue: float = 0.0
    profit: float = 0.0
    average_sale_price: float = 0.0


class TrendPoint(_Derived):
    period_start: date
    profit: float
    revenue: float
    items_sold: int


class HeroMetrics(_Derived):
    total_profit: float = 0.0
    total_cost: float = 0.0
    total_items_sold: int = 0
    average_roi: float = 0.0
    active_inventory_value: float = 0.0


class CategoryTotal(_Derived):
    category: ExpenseCategory
    label: str
    amount: float
    count: int


class SellingExpenses(_Derived):
    """Per-sale costs of the items sold in a period."""

    platform_fees: float = 0.0
    shipping_costs: float = 0.0
    total: float = 0.0


class PlatformTotal(_Derived):
    """Sales and fees on one selling platform."""

    platform: str
    label: str
    sales: float
    fees: float
    count: int


class ProfitLossSummary(_Derived):
    """Financial summary for a reporting period."""

    period_start: date | None
    period_end: date | None
    gross_sales: float = 0.0
    items_sold: int = 0
    average_sale_price: float = 0.0
    cost_of_goods_sold: float = 0.0
    gross_profit: float = 0.0
    gross_margin: float = 0.0
    selling_expenses: SellingExpenses = Field(default_factory=SellingExpenses)
    platform_breakdown: list[PlatformTotal] = Field(default_factory=list)
    operating_expenses: list[CategoryTotal] = Field(default_factory=list)
    total_operating_expenses: float = 0.0
    unlinked_expenses: float = 0.0
    mileage: DeductionResult = Field(default_factory=DeductionResult)
    total_expenses: float = 0.0
    net_profit: float = 0.0
    net_margin: float = 0.0


# ---------------------------------------------------------------------------
# Record coercion
# ---------------------------------------------------------------------------

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_records(
    model: type[ModelT],
    records: Iterable[ModelT | Mapping[str, Any]] | None,
) -> list[ModelT]:
    """Validate a collection of records, skipping the malformed ones.

    Instances of ``model`` pass through untouched. Mappings are validated
    individually; a failure is logged and the record dropped so that one
    bad row never aborts a whole report.
    """
    if not records:
        return []

    valid: list[ModelT] = []
    skipped = 0
    for index, record in enumerate(records):
        if isinstance(record, model):
            valid.append(record)
            continue
        try:
            valid.append(model.model_validate(record))
        except ValidationError as exc:
            skipped += 1
            record_id = record.get("id") if isinstance(record, Mapping) else None
            logger.warning(
                "Skipping malformed %s record #%d (id=%s): %d validation error(s): %s",
                model.__name__,
                index,
                record_id,
                exc.error_count(),
                exc.errors()[0]["msg"] if exc.error_count() else "",
            )

    if skipped:
        logger.info(
            "%s: kept %d record(s), skipped %d", model.__name__, len(valid), skipped
        )
    return valid
