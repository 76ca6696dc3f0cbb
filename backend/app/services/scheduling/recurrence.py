from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from itertools import count
from typing import Iterator, Optional

from app.core.errors import RecurrenceConfigError
from app.services.scheduling import dates

logger = logging.getLogger(__name__)


class RecurrenceType(str, Enum):
    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY_BY_DATE = "monthly_by_date"
    MONTHLY_BY_NTH_WEEKDAY = "monthly_by_nth_weekday"

    @classmethod
    def parse(cls, value: "RecurrenceType | str | None") -> "RecurrenceType":
        """Parse a rule type, accepting the short names older clients send."""
        if isinstance(value, cls):
            return value
        key = (value or "none").strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise RecurrenceConfigError(
                f"Unsupported recurrence type: {value!r}", field="recurrence_type"
            )


_ALIASES = {
    "": "none",
    "monthly_date": "monthly_by_date",
    "monthly_nth": "monthly_by_nth_weekday",
}


@dataclass
class RecurrenceRule:
    """How a base practice repeats. ``end_date`` is inclusive."""

    type: RecurrenceType = RecurrenceType.NONE
    end_date: Optional[date] = None

    def __post_init__(self):
        self.type = RecurrenceType.parse(self.type)
        if isinstance(self.end_date, str):
            self.end_date = (
                dates.parse_date(self.end_date, field="recurrence_end_date")
                if self.end_date.strip()
                else None
            )

    @property
    def is_recurring(self) -> bool:
        return self.type is not RecurrenceType.NONE


def validate_rule(base_date: date, rule: RecurrenceRule, today: Optional[date] = None) -> None:
    """Raise RecurrenceConfigError unless ``rule`` can be expanded from ``base_date``."""
    if not rule.is_recurring:
        return
    today = today or dates.today()
    if rule.end_date is None:
        raise RecurrenceConfigError("Please choose an end date for the repeating practice.")
    if rule.end_date > dates.year_end(today):
        raise RecurrenceConfigError("The repeat end date must be within this year.")
    if rule.end_date < base_date:
        raise RecurrenceConfigError("The repeat end date must not be before the first practice.")


def iter_occurrence_dates(
    base_date: date,
    rule: RecurrenceRule,
    today: Optional[date] = None,
) -> Iterator[date]:
    """Yield occurrence dates from ``base_date`` through ``rule.end_date``.

    Monthly steps are always taken from the base date, so a month that
    clamps (Jan 30 -> Feb 28) does not shift the following months.
    """
    validate_rule(base_date, rule, today)

    if rule.type is RecurrenceType.NONE:
        yield base_date
        return

    end = rule.end_date
    if rule.type is RecurrenceType.WEEKLY:
        for k in count():
            candidate = dates.add_weeks(base_date, k)
            if candidate > end:
                return
            yield candidate

    elif rule.type is RecurrenceType.MONTHLY_BY_DATE:
        for k in count():
            candidate = dates.add_months_keeping_day(base_date, k)
            if candidate > end:
                return
            yield candidate

    elif rule.type is RecurrenceType.MONTHLY_BY_NTH_WEEKDAY:
        weekday_index = base_date.weekday()
        nth = dates.nth_week_of(base_date)
        first_of_month = base_date.replace(day=1)
        for k in count():
            month_start = dates.add_months_keeping_day(first_of_month, k)
            if month_start > end:
                return
            candidate = dates.nth_weekday_of_month(
                month_start.year, month_start.month, weekday_index, nth
            )
            if candidate is None:
                logger.debug(
                    f"No weekday #{nth} ({weekday_index}) in {month_start:%Y-%m}; skipping month"
                )
                continue
            if base_date <= candidate <= end:
                yield candidate


def expand_dates(
    base_date: date,
    rule: RecurrenceRule,
    today: Optional[date] = None,
    after: Optional[date] = None,
) -> list[date]:
    """Materialise the occurrence dates, optionally keeping only those after ``after``."""
    result = []
    for candidate in iter_occurrence_dates(base_date, rule, today):
        if after is not None and candidate <= after:
            continue
        if result and result[-1] == candidate:
            continue
        result.append(candidate)
    return result
