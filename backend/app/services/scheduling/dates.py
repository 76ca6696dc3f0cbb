"""Calendar helpers for practice scheduling.

All dates are naive local calendar days. Times of day are carried around as
canonical ``HH:MM`` strings, which compare correctly as plain strings.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta, weekday, MO, TU, WE, TH, FR, SA, SU

from app.core.errors import ValidationError

DateLike = Union[date, str]

# Indexed like date.weekday(): 0 = Monday
WEEKDAYS: tuple[weekday, ...] = (MO, TU, WE, TH, FR, SA, SU)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{1,2})(?::\d{1,2}(?:\.\d+)?)?$")


def today() -> date:
    """Current local calendar day."""
    return date.today()


def year_end(reference: date) -> date:
    """December 31 of the reference date's year."""
    return date(reference.year, 12, 31)


def parse_date(value: Optional[DateLike], field: str = "event_date") -> date:
    if isinstance(value, date):
        return value
    text = (value or "").strip()
    if not text:
        raise ValidationError("Please enter a date.", field=field)
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError("Invalid date format; expected YYYY-MM-DD.", field=field)


def normalize_time(value: Optional[str], field: str = "start_time") -> str:
    """Return ``value`` as zero-padded 24h ``HH:MM``.

    ``9:00`` becomes ``09:00`` and ``14:00:00`` becomes ``14:00``.
    """
    text = (value or "").strip()
    if not text:
        raise ValidationError("Please enter a time.", field=field)
    match = _TIME_RE.match(text)
    if not match:
        raise ValidationError("Invalid time format; expected HH:MM (24h).", field=field)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError("Invalid time format; expected HH:MM (24h).", field=field)
    return f"{hours:02d}:{minutes:02d}"


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for a canonical ``HH:MM`` value."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def add_weeks(d: date, n: int) -> date:
    return d + timedelta(weeks=n)


def add_months_keeping_day(d: date, n: int) -> date:
    """Move ``n`` months, keeping the day of month.

    Days past the end of the target month are clamped to its last day
    (Jan 31 + 1 month is Feb 28, or Feb 29 in leap years).
    """
    return d + relativedelta(months=n)


def nth_week_of(d: date) -> int:
    """Ordinal of ``d``'s weekday within its month (1..5)."""
    return (d.day - 1) // 7 + 1


def nth_weekday_of_month(year: int, month: int, weekday_index: int, n: int) -> Optional[date]:
    """The ``n``-th ``weekday_index`` (0 = Monday) of the month, or None.

    None means the month has no such day, e.g. a fifth Tuesday.
    """
    if not 0 <= weekday_index <= 6 or not 1 <= n <= 5:
        raise ValueError(f"Invalid weekday/ordinal: {weekday_index}/{n}")
    candidate = date(year, month, 1) + relativedelta(weekday=WEEKDAYS[weekday_index](+n))
    if candidate.month != month:
        return None
    return candidate
