# logbook/utils/time.py
"""
Time helpers.

The database keeps naive UTC datetimes truncated to milliseconds; the API speaks
epoch milliseconds. Everything that converts between the two lives here.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1)


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, truncated to milliseconds."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return calendar.timegm(dt.utctimetuple()) * 1000 + dt.microsecond // 1000


def from_epoch_ms(ms: int) -> datetime:
    """Naive UTC datetime for an epoch-millisecond value.

    Raises OverflowError when the value is outside the datetime range.
    """
    return EPOCH + timedelta(milliseconds=ms)


def end_of_today(today: Optional[date] = None) -> datetime:
    """
    23:59:59.999 of the current local date, read as UTC.

    This is the latest instant a creation-date filter may ask for.
    """
    today = today or date.today()
    return datetime.combine(today, time(23, 59, 59, 999000))


def iso_ms_z(dt: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z, e.g. 2024-01-01T23:59:59.999Z."""
    return dt.isoformat(timespec="milliseconds") + "Z"
