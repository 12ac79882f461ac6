"""Calendar-day helpers shared by every engine component.

All engine dates are plain ``datetime.date`` values: no time of day and no
timezone. Anything date-like entering the engine goes through ``to_date``.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

import pandas as pd
from dateutil.relativedelta import relativedelta

from runway.errors import InvalidDateRange

DEFAULT_MAX_HORIZON_DAYS = 365


def to_date(value) -> date:
    """Normalize a date-like value to a calendar day.

    Args:
        value: ``date``, ``datetime``, ``pd.Timestamp`` or ISO-8601 string.
            Strings may carry a time part (``2024-01-05T23:00:00Z``); only the
            date part is used.

    Returns:
        date: The calendar day.

    Raises:
        ValueError: If the value is missing or cannot be parsed.
    """
    if value is None:
        raise ValueError("Missing date value")
    # pd.NaT is a datetime subclass, so check it before the isinstance tests
    if not isinstance(value, str) and pd.isna(value):
        raise ValueError("Missing date value")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Missing date value")
        return date.fromisoformat(text.split("T")[0].split(" ")[0])
    raise ValueError(f"Unsupported date value: {value!r}")


def to_optional_date(value) -> Optional[date]:
    """Like ``to_date`` but maps missing or unparseable values to None."""
    try:
        return to_date(value)
    except (ValueError, TypeError):
        return None


def day_range(start: date, end: date) -> List[date]:
    """Inclusive list of calendar days from start to end.

    Raises:
        InvalidDateRange: If end is before start.
    """
    if end < start:
        raise InvalidDateRange(start, end)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def horizon_end(start: date, months: int, max_days: int = DEFAULT_MAX_HORIZON_DAYS) -> date:
    """Last day of a forward horizon of ``months`` months, capped at ``max_days``."""
    end = start + relativedelta(months=months)
    cap = start + timedelta(days=max_days)
    return min(end, cap)
