"""
Date helpers shared by the forecasting engine and the pipeline stages.
"""

from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


def months_between(start: date | datetime, end: date | datetime) -> float:
    """Return the calendar months elapsed from ``start`` to ``end``.

    Whole months are counted from the year/month fields; the remaining days
    contribute a fraction based on a 30-day month. Negative when ``end`` is
    earlier than ``start``.

    Example:
        ``months_between(date(2024, 1, 15), date(2025, 1, 15))`` → ``12.0``
    """
    whole = (end.year - start.year) * 12 + (end.month - start.month)
    return whole + (end.day - start.day) / 30.0


def months_ago(reference: date, months: int) -> date:
    """Return the date ``months`` calendar months before ``reference``.

    The day is clamped to 28 so the result is valid in every month.
    """
    total = reference.year * 12 + (reference.month - 1) - months
    year, month_index = divmod(total, 12)
    return date(year, month_index + 1, min(reference.day, 28))
