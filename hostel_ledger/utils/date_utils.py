# hostel_ledger/utils/date_utils.py
"""
Date helpers shared by the billing engine and the ledger projection.

Two notions of "month" coexist on purpose:
- calendar months (`add_months`) decide the authoritative admission-through date
- 30-day blocks (`block_start`, `blocks_elapsed`) lay out ledger lines and
  drive proration
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

UTC = timezone.utc


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form SQLite hands back)."""
    return datetime.now(UTC).replace(tzinfo=None)


def today() -> date:
    """Return today's date in UTC."""
    return datetime.now(UTC).date()


def as_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    """Normalize a date or datetime to a date; None passes through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def add_months(start: date, months: int) -> date:
    """
    Calendar-month arithmetic with the day clamped to the shorter month.

    >>> add_months(date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    """
    return start + relativedelta(months=months)


def block_start(anchor: date, index: int, days_per_block: int = 30) -> date:
    """Start date of the index-th 30-day block counted from anchor."""
    return anchor + timedelta(days=index * days_per_block)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end precedes start)."""
    return (end - start).days


def blocks_elapsed(start: date, end: date, days_per_block: int = 30) -> int:
    """Number of completed blocks between start and end (floor, never negative)."""
    return max(0, days_between(start, end)) // days_per_block


def blocks_touched(days: int, days_per_block: int = 30) -> int:
    """Number of blocks a stay of `days` days touches (ceil)."""
    if days <= 0:
        return 0
    return math.ceil(days / days_per_block)


def overlap_days(start_a: date, end_a: date, start_b: date, end_b: date) -> int:
    """Days shared by half-open ranges [start_a, end_a) and [start_b, end_b)."""
    start = max(start_a, start_b)
    end = min(end_a, end_b)
    return max(0, (end - start).days)
