"""Stepping functions: next occurrence date for each recurrence family.

All functions here are pure and total: any rule, however malformed, yields a
date strictly after the anchor.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, List

from studydash.models.constants import (
    BIWEEKLY_INTERVAL_DAYS,
    CUSTOM_FALLBACK_DAYS,
    MONTHLY_FALLBACK_DAYS,
    WEEKLY_INTERVAL_DAYS,
)
from studydash.models.recurrence import RecurrenceRule, RecurrenceType


def weekday_number(d: date) -> int:
    """Weekday with 0=Sunday..6=Saturday (Python's weekday() has Monday=0)."""
    return (d.weekday() + 1) % 7


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _valid_weekdays(days: Iterable[int]) -> set:
    return {d for d in days if isinstance(d, int) and 0 <= d <= 6}


def _valid_month_days(days: Iterable[int]) -> List[int]:
    return sorted({d for d in days if isinstance(d, int) and 1 <= d <= 31})


def _next_matching_weekday(anchor: date, weekdays: set) -> date:
    for offset in range(1, WEEKLY_INTERVAL_DAYS + 1):
        probe = anchor + timedelta(days=offset)
        if weekday_number(probe) in weekdays:
            return probe
    return anchor + timedelta(days=WEEKLY_INTERVAL_DAYS)


def _next_biweekly_weekday(anchor: date, weekdays: set) -> date:
    earliest = anchor + timedelta(days=BIWEEKLY_INTERVAL_DAYS)
    for offset in range(1, BIWEEKLY_INTERVAL_DAYS + 1):
        probe = anchor + timedelta(days=offset)
        if probe >= earliest and weekday_number(probe) in weekdays:
            return probe
    return earliest


def _next_month_day(anchor: date, month_days: List[int]) -> date:
    # Requested days past the end of a month land on its last day (31 -> 30 in April).
    dim = _days_in_month(anchor.year, anchor.month)
    for dom in month_days:
        clamped = min(dom, dim)
        if clamped > anchor.day:
            return anchor.replace(day=clamped)

    year, month = (anchor.year + 1, 1) if anchor.month == 12 else (anchor.year, anchor.month + 1)
    return date(year, month, min(month_days[0], _days_in_month(year, month)))


def next_occurrence(anchor: date, rule: RecurrenceRule) -> date:
    """Return the next candidate date strictly after `anchor` for `rule`."""
    kind = RecurrenceType(rule.recurrence_type)

    if kind == RecurrenceType.DAILY:
        return anchor + timedelta(days=1)

    if kind == RecurrenceType.WEEKLY:
        weekdays = _valid_weekdays(rule.days_of_week)
        if not weekdays:
            return anchor + timedelta(days=WEEKLY_INTERVAL_DAYS)
        return _next_matching_weekday(anchor, weekdays)

    if kind == RecurrenceType.BIWEEKLY:
        weekdays = _valid_weekdays(rule.days_of_week)
        if not weekdays:
            return anchor + timedelta(days=BIWEEKLY_INTERVAL_DAYS)
        return _next_biweekly_weekday(anchor, weekdays)

    if kind == RecurrenceType.MONTHLY:
        month_days = _valid_month_days(rule.days_of_month)
        if not month_days:
            return anchor + timedelta(days=MONTHLY_FALLBACK_DAYS)
        return _next_month_day(anchor, month_days)

    interval = rule.interval_days if isinstance(rule.interval_days, int) and rule.interval_days > 0 else CUSTOM_FALLBACK_DAYS
    return anchor + timedelta(days=interval)


def first_occurrence(start: date, rule: RecurrenceRule) -> date:
    """First occurrence on or after `start` for a pattern with no instances yet.

    Rules that select days (weekly/biweekly weekdays, monthly days of month) step
    from the day before `start`, so `start` itself qualifies when it matches the
    selection. The first biweekly hit uses the weekly probe: the two-week gap only
    applies between consecutive occurrences. Pure-interval rules start on `start`.
    """
    kind = RecurrenceType(rule.recurrence_type)
    day_before = start - timedelta(days=1)

    if kind in (RecurrenceType.WEEKLY, RecurrenceType.BIWEEKLY):
        weekdays = _valid_weekdays(rule.days_of_week)
        if weekdays:
            return _next_matching_weekday(day_before, weekdays)
        return start

    if kind == RecurrenceType.MONTHLY:
        month_days = _valid_month_days(rule.days_of_month)
        if month_days:
            return _next_month_day(day_before, month_days)
        return start

    return start
