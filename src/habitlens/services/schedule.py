"""Recurrence rules: which calendar dates a habit is due on."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Iterator, Union, assert_never


class Repetition(str, Enum):
    """Stored repetition keyword for a habit."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True, slots=True)
class Daily:
    """Due every day."""


@dataclass(frozen=True, slots=True)
class Weekly:
    """Due on the listed weekdays (0=Sunday .. 6=Saturday)."""

    days: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class Monthly:
    """Due on the listed days of the month (1..31)."""

    days: frozenset[int] = field(default_factory=frozenset)


Schedule = Union[Daily, Weekly, Monthly]

# Largest gap in days between two records that still keeps a run alive.
GRACE_WINDOW_DAYS = {
    Repetition.DAILY: 1,
    Repetition.WEEKLY: 7,
    Repetition.MONTHLY: 31,
}


def build_schedule(repetition: Repetition | str, specific_days: Iterable[int] | None = None) -> Schedule:
    """Return the schedule variant for a stored repetition rule."""

    kind = Repetition(repetition)
    days = frozenset(specific_days or ())
    if kind is Repetition.DAILY:
        return Daily()
    if kind is Repetition.WEEKLY:
        return Weekly(days)
    return Monthly(days)


def repetition_of(schedule: Schedule) -> Repetition:
    if isinstance(schedule, Daily):
        return Repetition.DAILY
    if isinstance(schedule, Weekly):
        return Repetition.WEEKLY
    if isinstance(schedule, Monthly):
        return Repetition.MONTHLY
    assert_never(schedule)


def grace_window_for(schedule: Schedule | Repetition | str) -> int:
    """Return the grace window in days for a schedule or repetition keyword."""

    if isinstance(schedule, (Daily, Weekly, Monthly)):
        return GRACE_WINDOW_DAYS[repetition_of(schedule)]
    return GRACE_WINDOW_DAYS[Repetition(schedule)]


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0."""

    return day.isoweekday() % 7


def is_due(day: date, schedule: Schedule) -> bool:
    """Return True when ``schedule`` expects the habit to be done on ``day``.

    Creation dates are not considered here; callers clamp ranges themselves.
    """

    if isinstance(schedule, Daily):
        return True
    if isinstance(schedule, Weekly):
        return weekday_index(day) in schedule.days
    if isinstance(schedule, Monthly):
        return day.day in schedule.days
    assert_never(schedule)


def as_date(value: date | str) -> date:
    """Accept a ``date``, a ``datetime`` or an ISO ``YYYY-MM-DD`` string."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def date_range(start: date | str, end: date | str) -> Iterator[date]:
    """Yield every calendar date from ``start`` to ``end`` inclusive."""

    cursor = as_date(start)
    stop = as_date(end)
    while cursor <= stop:
        yield cursor
        if cursor == stop:
            break
        cursor += timedelta(days=1)


def due_dates(
    schedule: Schedule,
    start: date | str,
    end: date | str,
    *,
    not_before: date | None = None,
) -> list[date]:
    """List the due dates within ``[start, end]``, optionally from ``not_before`` on."""

    return [
        day
        for day in date_range(start, end)
        if (not_before is None or day >= not_before) and is_due(day, schedule)
    ]


__all__ = [
    "Daily",
    "GRACE_WINDOW_DAYS",
    "Monthly",
    "Repetition",
    "Schedule",
    "Weekly",
    "as_date",
    "build_schedule",
    "date_range",
    "due_dates",
    "grace_window_for",
    "is_due",
    "repetition_of",
    "weekday_index",
]
