"""Working-day calendar helpers.

All functions are pure. Dates are plain calendar days; datetimes are
converted to UTC before their day is taken so a local offset never moves
a leave onto a neighbouring day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Union

from leavetracker.common.constants import WEEKEND_DAYS

DateLike = Union[date, datetime, str]


def _utc_day(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def parse_calendar_date(value: DateLike) -> date:
    """Return the calendar date for ``value``.

    Accepts a ``date``, a ``datetime`` (UTC day) or an ISO string. A full
    ISO timestamp is read as an instant and its UTC day is taken. Raises
    ``ValueError`` for anything else.
    """
    if isinstance(value, (date, datetime)):
        return _utc_day(value)
    if isinstance(value, str):
        text = value.strip()
        if "T" not in text:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return _utc_day(datetime.fromisoformat(text))
    raise ValueError(f"Not a calendar date: {value!r}")


def is_weekend(value: Union[date, datetime]) -> bool:
    """True iff the (UTC) day falls on a Saturday or Sunday."""
    return _utc_day(value).weekday() in WEEKEND_DAYS


def next_working_day(day: date) -> date:
    """Return ``day`` itself if it is a weekday, else the following Monday."""
    while day.weekday() in WEEKEND_DAYS:
        day += timedelta(days=1)
    return day


def working_day_span(start: Union[date, datetime], count: int) -> list[date]:
    """Return ``count`` consecutive working days beginning on or after ``start``.

    Weekends are skipped. A weekend ``start`` is advanced to the following
    Monday.
    """
    if count < 0:
        raise ValueError("count must be >= 0")

    span: list[date] = []
    if count == 0:
        return span
    current = next_working_day(_utc_day(start))
    while True:
        if current.weekday() not in WEEKEND_DAYS:
            span.append(current)
            if len(span) == count:
                return span
        # Raises OverflowError past date.max
        current += timedelta(days=1)
