"""Business-day arithmetic.

A business day is Monday to Friday.  Dates landing on a weekend are
moved back to the preceding Friday, never forward.
"""

from __future__ import annotations

from datetime import date, timedelta

_ONE_DAY = timedelta(days=1)


def is_business_day(day: date) -> bool:
    return day.weekday() < 5


def to_business_day(day: date) -> date:
    """Return ``day`` or, for Saturday/Sunday, the preceding Friday."""
    while not is_business_day(day):
        day -= _ONE_DAY
    return day


def add_business_days(start: date, days: int) -> date:
    """Move ``days`` business days after ``start``.

    Negative values delegate to ``subtract_business_days``.
    """
    if days < 0:
        return subtract_business_days(start, -days)
    current = start
    remaining = days
    while remaining > 0:
        current += _ONE_DAY
        if is_business_day(current):
            remaining -= 1
    return current


def subtract_business_days(start: date, days: int) -> date:
    if days < 0:
        return add_business_days(start, -days)
    current = start
    remaining = days
    while remaining > 0:
        current -= _ONE_DAY
        if is_business_day(current):
            remaining -= 1
    return current


def shift_business_days(start: date, offset: int) -> date:
    """Signed business-day shift: ``start`` itself when ``offset`` is 0."""
    if offset >= 0:
        return add_business_days(start, offset)
    return subtract_business_days(start, -offset)


def shift_calendar_days(start: date, offset: int) -> date:
    """Calendar-day shift, then weekend results fall back to Friday."""
    return to_business_day(start + timedelta(days=offset))
