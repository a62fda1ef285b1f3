"""Mileage Deduction Calculator.

Each trip carries the per-mile rate that applied when it was logged, so
a later change to the standard rate never rewrites history. Totals are
always summed trip by trip (``sum(miles * rate)``), never computed as
total miles times a single rate.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from .clock import Clock, system_clock
from .config import get_settings
from .models import DeductionResult, MileageTrip, coerce_records

logger = logging.getLogger("ledger.mileage")

TripInput = MileageTrip | Mapping[str, Any]


def trip_deduction(trip: MileageTrip) -> float:
    return trip.miles * trip.rate_per_mile


def estimate_deduction(miles: float, rate_per_mile: float | None = None) -> float:
    """Deduction for a trip that has not been saved yet.

    Args:
        miles: Distance driven. Must be finite and non-negative.
        rate_per_mile: Rate to apply. Defaults to the configured standard rate.

    Raises:
        ValueError: If miles or rate is negative or not finite.
    """
    if rate_per_mile is None:
        rate_per_mile = get_settings().standard_mileage_rate
    if not math.isfinite(miles) or miles < 0:
        raise ValueError(f"miles must be a finite, non-negative number, got {miles!r}")
    if not math.isfinite(rate_per_mile) or rate_per_mile < 0:
        raise ValueError(
            f"rate_per_mile must be a finite, non-negative number, got {rate_per_mile!r}"
        )
    return miles * rate_per_mile


def summarize_trips(trips: Iterable[TripInput]) -> DeductionResult:
    """Total miles and deduction over a set of trips.

    Malformed trip records are skipped, not fatal.
    """
    valid = coerce_records(MileageTrip, trips)
    if not valid:
        return DeductionResult()

    total_miles = sum(t.miles for t in valid)
    total_deduction = sum(trip_deduction(t) for t in valid)
    average_rate = sum(t.rate_per_mile for t in valid) / len(valid)

    return DeductionResult(
        total_miles=total_miles,
        total_deduction=total_deduction,
        trip_count=len(valid),
        average_rate=average_rate,
    )


def ytd_summary(
    trips: Iterable[TripInput],
    clock: Clock = system_clock,
    year: int | None = None,
) -> DeductionResult:
    """Summary of trips in one calendar year, the clock's current year by default."""
    year = year if year is not None else clock().year
    valid = coerce_records(MileageTrip, trips)
    year_trips = [t for t in valid if t.trip_date.year == year]

    result = summarize_trips(year_trips)
    logger.info(
        "Mileage YTD %d: %d of %d trip(s), %.1f miles, $%.2f deduction",
        year,
        result.trip_count,
        len(valid),
        result.total_miles,
        result.total_deduction,
    )
    return result


def summary_for_lot(trips: Iterable[TripInput], lot_id: str) -> DeductionResult:
    """Summary of trips linked to a lot. Shared trips count in full."""
    valid = coerce_records(MileageTrip, trips)
    return summarize_trips([t for t in valid if lot_id in t.linked_lot_ids])
