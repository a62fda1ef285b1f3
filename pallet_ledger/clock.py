"""Explicit "today" for anything that depends on the calendar.

Staleness checks and period presets take a ``clock`` argument instead of
reading the system time, so callers (and tests) decide what today is.

    >>> from datetime import date
    >>> clock = fixed_clock(date(2026, 2, 14))
    >>> clock()
    datetime.date(2026, 2, 14)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

Clock = Callable[[], date]


def system_clock() -> date:
    """Local calendar date of the running process."""
    return date.today()


def zone_clock(tz_name: str) -> Clock:
    """Clock returning today's date in the given IANA timezone."""
    tz = ZoneInfo(tz_name)

    def _today() -> date:
        return datetime.now(tz).date()

    return _today


def fixed_clock(day: date) -> Clock:
    """Clock frozen on ``day``."""

    def _today() -> date:
        return day

    return _today
