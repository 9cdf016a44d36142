"""Success rates and time-bucketed aggregates for a single habit."""

from __future__ import annotations

from calendar import monthrange
from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable

from .history import CompletionLike, HabitRule, completed_in_range, completion_map, schedule_for
from .schedule import as_date, date_range, due_dates, is_due, weekday_index

DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

NO_ACTIVE_DAY = -1


@dataclass(slots=True)
class DayOfWeekStat:
    day_of_week: int
    total_days: int = 0
    completed_days: int = 0
    success_rate: float = 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["day_name"] = day_name(self.day_of_week)
        return data


@dataclass(slots=True)
class MonthlyTrend:
    month: int
    success_rate: float
    completions: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["month_name"] = month_name(self.month)
        return data


@dataclass(slots=True)
class QuarterlyTrend:
    quarter: int
    success_rate: float
    completions: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True)
class BestWorstDays:
    """Weekday indexes, ``-1`` when no weekday had a due date in range."""

    best: int
    worst: int


def day_name(day_of_week: int) -> str:
    if 0 <= day_of_week < len(DAY_NAMES):
        return DAY_NAMES[day_of_week]
    return "Unknown"


def month_name(month: int) -> str:
    if 1 <= month <= len(MONTH_NAMES):
        return MONTH_NAMES[month - 1]
    return "Unknown"


def calculate_success_rate(
    habit: HabitRule,
    completions: Iterable[CompletionLike],
    start: date | str,
    end: date | str,
) -> float:
    """Completed records in range divided by due dates in range.

    The numerator is not restricted to due dates: a completion logged on an
    unscheduled day still counts. The ratio is capped at 1.0.
    """

    start_day, end_day = as_date(start), as_date(end)
    due = due_dates(schedule_for(habit), start_day, end_day)
    if not due:
        return 0.0
    successes = completed_in_range(completion_map(completions), start_day, end_day)
    return min(1.0, successes / len(due))


def calculate_day_of_week_stats(
    habit: HabitRule,
    completions: Iterable[CompletionLike],
    start: date | str,
    end: date | str,
) -> list[DayOfWeekStat]:
    """Due and completed counts for each weekday, Sunday first."""

    schedule = schedule_for(habit)
    history = completion_map(completions)
    stats = [DayOfWeekStat(day_of_week=index) for index in range(7)]

    for day in date_range(start, end):
        if not is_due(day, schedule):
            continue
        bucket = stats[weekday_index(day)]
        bucket.total_days += 1
        if history.get(day):
            bucket.completed_days += 1

    for bucket in stats:
        bucket.success_rate = bucket.completed_days / bucket.total_days if bucket.total_days else 0
    return stats


def select_best_and_worst(stats: Iterable[DayOfWeekStat]) -> BestWorstDays:
    """Pick best and worst buckets scanning left to right.

    Only strict improvements replace the current pick, so the earliest
    weekday wins ties on both ends.
    """

    best: DayOfWeekStat | None = None
    worst: DayOfWeekStat | None = None
    for bucket in stats:
        if best is None or bucket.success_rate > best.success_rate:
            best = bucket
        if worst is None or bucket.success_rate < worst.success_rate:
            worst = bucket
    if best is None or worst is None:
        return BestWorstDays(best=NO_ACTIVE_DAY, worst=NO_ACTIVE_DAY)
    return BestWorstDays(best=best.day_of_week, worst=worst.day_of_week)


def find_best_and_worst_days(
    habit: HabitRule,
    completions: Iterable[CompletionLike],
    start: date | str,
    end: date | str,
) -> BestWorstDays:
    """Best and worst weekday among weekdays with at least one due date."""

    stats = calculate_day_of_week_stats(habit, completions, start, end)
    return select_best_and_worst(bucket for bucket in stats if bucket.total_days > 0)


def _bucket_trend(
    habit: HabitRule, completions: list[CompletionLike], start: date, end: date
) -> tuple[float, int]:
    rate = calculate_success_rate(habit, completions, start, end)
    count = completed_in_range(completion_map(completions), start, end)
    return rate, count


def calculate_monthly_trends(
    habit: HabitRule, completions: Iterable[CompletionLike], year: int
) -> list[MonthlyTrend]:
    """Success rate and completed count for each month of ``year``."""

    records = list(completions)
    trends = []
    for month in range(1, 13):
        start = date(year, month, 1)
        end = date(year, month, monthrange(year, month)[1])
        rate, count = _bucket_trend(habit, records, start, end)
        trends.append(MonthlyTrend(month=month, success_rate=rate, completions=count))
    return trends


def calculate_quarterly_trends(
    habit: HabitRule, completions: Iterable[CompletionLike], year: int
) -> list[QuarterlyTrend]:
    """Success rate and completed count for each calendar quarter of ``year``."""

    records = list(completions)
    trends = []
    for quarter in range(1, 5):
        first_month = 3 * (quarter - 1) + 1
        last_month = first_month + 2
        start = date(year, first_month, 1)
        end = date(year, last_month, monthrange(year, last_month)[1])
        rate, count = _bucket_trend(habit, records, start, end)
        trends.append(QuarterlyTrend(quarter=quarter, success_rate=rate, completions=count))
    return trends


def completion_distribution(
    habit: HabitRule,
    completions: Iterable[CompletionLike],
    start: date | str,
    end: date | str,
) -> tuple[int, int]:
    """Return ``(due_days, completed_due_days)`` from the habit's creation date on."""

    history = completion_map(completions)
    due = due_dates(schedule_for(habit), start, end, not_before=as_date(habit.created_at))
    completed = sum(1 for day in due if history.get(day))
    return len(due), completed


__all__ = [
    "BestWorstDays",
    "DAY_NAMES",
    "DayOfWeekStat",
    "MONTH_NAMES",
    "MonthlyTrend",
    "NO_ACTIVE_DAY",
    "QuarterlyTrend",
    "calculate_day_of_week_stats",
    "calculate_monthly_trends",
    "calculate_quarterly_trends",
    "calculate_success_rate",
    "completion_distribution",
    "day_name",
    "find_best_and_worst_days",
    "month_name",
    "select_best_and_worst",
]
