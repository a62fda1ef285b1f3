"""Period filtering.

Resolves named presets ("this_quarter", "q2", ...) into concrete date
ranges and filters dated records against a range. Presets are resolved
from the clock on every call; nothing is cached.

Note that ``q1``..``q4`` always mean the quarters of the clock's current
calendar year, while ``this_quarter`` is whichever quarter contains today.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable
from datetime import date
from typing import TypeVar

from .clock import Clock, system_clock
from .models import DatePreset, DateRange

T = TypeVar("T")

_QUARTER_START_MONTH = {1: 1, 2: 4, 3: 7, 4: 10}


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def quarter_bounds(year: int, quarter: int) -> tuple[date, date]:
    """First and last day of a calendar quarter."""
    if quarter not in _QUARTER_START_MONTH:
        raise ValueError(f"quarter must be 1-4, got {quarter}")
    start_month = _QUARTER_START_MONTH[quarter]
    end_month = start_month + 2
    last_day = calendar.monthrange(year, end_month)[1]
    return date(year, start_month, 1), date(year, end_month, last_day)


def _quarter_range(year: int, quarter: int, preset: DatePreset) -> DateRange:
    start, end = quarter_bounds(year, quarter)
    return DateRange(start=start, end=end, preset=preset)


def get_date_range_from_preset(
    preset: DatePreset | str,
    clock: Clock = system_clock,
) -> DateRange:
    """Resolve a preset against today's date.

    Raises:
        ValueError: For an unknown preset name.
    """
    preset = DatePreset(preset)
    today = clock()
    year = today.year

    if preset in (DatePreset.ALL, DatePreset.CUSTOM):
        return DateRange(preset=preset)

    if preset == DatePreset.THIS_MONTH:
        last_day = calendar.monthrange(year, today.month)[1]
        return DateRange(
            start=date(year, today.month, 1),
            end=date(year, today.month, last_day),
            preset=preset,
        )

    named_quarters = {
        DatePreset.Q1: 1,
        DatePreset.Q2: 2,
        DatePreset.Q3: 3,
        DatePreset.Q4: 4,
    }
    if preset in named_quarters:
        return _quarter_range(year, named_quarters[preset], preset)

    if preset == DatePreset.THIS_QUARTER:
        return _quarter_range(year, quarter_of(today), preset)

    if preset == DatePreset.LAST_QUARTER:
        quarter = quarter_of(today) - 1
        if quarter == 0:
            return _quarter_range(year - 1, 4, preset)
        return _quarter_range(year, quarter, preset)

    if preset == DatePreset.THIS_YEAR:
        return DateRange(start=date(year, 1, 1), end=date(year, 12, 31), preset=preset)

    # LAST_YEAR
    return DateRange(
        start=date(year - 1, 1, 1), end=date(year - 1, 12, 31), preset=preset
    )


def in_range(day: date, date_range: DateRange) -> bool:
    """Inclusive on both ends; a None bound never excludes."""
    if date_range.start is not None and day < date_range.start:
        return False
    if date_range.end is not None and day > date_range.end:
        return False
    return True


def filter_by_date_range(
    records: Iterable[T],
    date_range: DateRange | None,
    date_of: Callable[[T], date | None],
) -> list[T]:
    """Records whose date falls in the range.

    A record without a date is kept only when the range is unbounded.
    """
    records = list(records)
    if date_range is None or date_range.is_unbounded:
        return records

    kept: list[T] = []
    for record in records:
        day = date_of(record)
        if day is not None and in_range(day, date_range):
            kept.append(record)
    return kept


def describe_range(date_range: DateRange, clock: Clock = system_clock) -> str:
    """Short label for a range, e.g. "Q1 2026" or "Jan 05 - Feb 10, 2026"."""
    year = clock().year
    preset = date_range.preset

    if preset == DatePreset.ALL:
        return "All Time"
    if preset in (DatePreset.Q1, DatePreset.Q2, DatePreset.Q3, DatePreset.Q4):
        if date_range.start:
            year = date_range.start.year
        return f"{preset.value.upper()} {year}"
    if date_range.is_unbounded:
        return "All Time"
    if preset == DatePreset.THIS_MONTH and date_range.start:
        return date_range.start.strftime("%B %Y")
    if preset in (DatePreset.THIS_QUARTER, DatePreset.LAST_QUARTER) and date_range.start:
        return f"Q{quarter_of(date_range.start)} {date_range.start.year}"
    if preset in (DatePreset.THIS_YEAR, DatePreset.LAST_YEAR) and date_range.start:
        return str(date_range.start.year)

    if date_range.start and date_range.end:
        return (
            f"{date_range.start.strftime('%b %d')} - "
            f"{date_range.end.strftime('%b %d, %Y')}"
        )
    if date_range.start:
        return f"Since {date_range.start.strftime('%b %d, %Y')}"
    return f"Through {date_range.end.strftime('%b %d, %Y')}"
