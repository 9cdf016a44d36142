"""Habit service: completion writes, streak refresh and per-habit reports."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Iterable, Optional

from ..config import ANALYTICS_PERIODS
from ..logging_config import get_logger
from ..models.habit import CompletionRecord, Habit
from .analytics import (
    NO_ACTIVE_DAY,
    calculate_day_of_week_stats,
    calculate_monthly_trends,
    calculate_success_rate,
    completion_distribution,
    day_name,
    find_best_and_worst_days,
)
from .history import completion_map, schedule_for
from .streaks import calculate_streak_periods, recompute_streaks

if TYPE_CHECKING:  # pragma: no cover
    from ..domain.repositories.habit import HabitRepository

logger = get_logger(__name__)

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DEFAULT_PERIOD = "30days"


class HabitNotFoundError(LookupError):
    """Raised when a habit id does not resolve to a stored habit."""

    def __init__(self, habit_id: int):
        super().__init__(f"Habit with ID {habit_id} not found")
        self.habit_id = habit_id


class InactiveHabitError(ValueError):
    """Raised when analytics are requested for an archived habit."""

    def __init__(self, habit_id: int):
        super().__init__(f"Habit with ID {habit_id} is inactive and cannot be analyzed")
        self.habit_id = habit_id


@dataclass(slots=True)
class CompletionWrite:
    """One requested completion change in a batch."""

    habit_id: int
    occurred_on: date
    completed: bool = True


def parse_day(value: str | date) -> date:
    """Parse a strict ``YYYY-MM-DD`` value."""

    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DAY.match(value.strip()):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    return date.fromisoformat(value.strip())


def period_window(period: Optional[str], *, today: date | None = None) -> tuple[date, date]:
    """Return ``(start, end)`` for a period keyword; unknown keywords mean 30 days."""

    today = today or date.today()
    days = ANALYTICS_PERIODS.get(period or DEFAULT_PERIOD, ANALYTICS_PERIODS[DEFAULT_PERIOD])
    return today - timedelta(days=days), today


def require_habit(repository: HabitRepository, habit_id: int) -> Habit:
    habit = repository.get_by_id(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def refresh_habit_streaks(
    repository: HabitRepository, habit_id: int, *, today: date | None = None
) -> Optional[Habit]:
    """Recompute and store streak fields from the habit's full history.

    There is no locking around the read-modify-write: concurrent writers race
    and the last one to save wins.
    """

    habit = repository.get_by_id(habit_id)
    if habit is None:
        return None

    summary = recompute_streaks(habit, repository.list_completions(habit_id), today=today)
    logger.info(
        "Streaks refreshed",
        extra={"habit_id": habit_id, **summary.to_dict()},
    )
    return repository.save_streaks(habit_id, summary)


def record_completion(
    repository: HabitRepository,
    habit_id: int,
    occurred_on: date | str,
    completed: bool = True,
    *,
    today: date | None = None,
) -> CompletionRecord:
    """Upsert a completion for a habit and refresh its streaks."""

    require_habit(repository, habit_id)
    day = parse_day(occurred_on)
    record = repository.upsert_completion(
        CompletionRecord(habit_id=habit_id, occurred_on=day, completed=completed)
    )
    logger.info(
        "Completion recorded",
        extra={"habit_id": habit_id, "date": day.isoformat(), "completed": completed},
    )
    refresh_habit_streaks(repository, habit_id, today=today)
    return record


def delete_completion(
    repository: HabitRepository,
    habit_id: int,
    occurred_on: date | str,
    *,
    today: date | None = None,
) -> bool:
    """Remove a completion; streaks are refreshed only when something was removed."""

    require_habit(repository, habit_id)
    day = parse_day(occurred_on)
    removed = repository.delete_completion(habit_id, day)
    if removed:
        logger.info("Completion deleted", extra={"habit_id": habit_id, "date": day.isoformat()})
        refresh_habit_streaks(repository, habit_id, today=today)
    return removed


def record_completions_batch(
    repository: HabitRepository,
    writes: Iterable[CompletionWrite],
    *,
    today: date | None = None,
) -> list[CompletionRecord]:
    """Apply many writes, skipping unknown habits, then refresh each touched habit once."""

    known: dict[int, bool] = {}
    touched: list[int] = []
    saved: list[CompletionRecord] = []

    for write in writes:
        if write.habit_id not in known:
            known[write.habit_id] = repository.get_by_id(write.habit_id) is not None
        if not known[write.habit_id]:
            logger.warning("Skipping completion for unknown habit", extra={"habit_id": write.habit_id})
            continue
        saved.append(
            repository.upsert_completion(
                CompletionRecord(
                    habit_id=write.habit_id,
                    occurred_on=write.occurred_on,
                    completed=write.completed,
                )
            )
        )
        if write.habit_id not in touched:
            touched.append(write.habit_id)

    for habit_id in touched:
        refresh_habit_streaks(repository, habit_id, today=today)
    return saved


def recompute_all(repository: HabitRepository, *, today: date | None = None) -> int:
    """Refresh streak fields for every habit; return how many were updated."""

    count = 0
    for habit in repository.list_all(include_inactive=True):
        if habit.id is not None and refresh_habit_streaks(repository, habit.id, today=today):
            count += 1
    return count


def habit_analytics(
    repository: HabitRepository,
    habit_id: int,
    period: Optional[str] = DEFAULT_PERIOD,
    *,
    today: date | None = None,
    top_streaks: int = 3,
) -> dict:
    """Build the analytics report for one habit over a period keyword."""

    today = today or date.today()
    habit = require_habit(repository, habit_id)
    if not habit.is_active:
        raise InactiveHabitError(habit_id)

    start, end = period_window(period, today=today)
    history = repository.list_completions(habit_id)
    in_period = [record for record in history if start <= record.occurred_on <= end]

    total_days, completed_days = completion_distribution(habit, in_period, start, end)
    best_worst = find_best_and_worst_days(habit, in_period, start, end)
    periods = calculate_streak_periods(completion_map(history), schedule_for(habit))

    return {
        "habit_id": habit.id,
        "habit_name": habit.name,
        "period": {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "description": period or DEFAULT_PERIOD,
        },
        "basic_stats": {
            "total_days": total_days,
            "completed_days": completed_days,
            "success_rate": calculate_success_rate(habit, in_period, start, end),
            "current_streak": habit.current_streak,
            "best_streak": habit.best_streak,
        },
        "day_of_week_stats": [
            stat.to_dict() for stat in calculate_day_of_week_stats(habit, in_period, start, end)
        ],
        "best_day": _day_payload(best_worst.best),
        "worst_day": _day_payload(best_worst.worst),
        "top_streaks": [streak.to_dict() for streak in periods[:top_streaks]],
        "monthly_trends": [
            trend.to_dict() for trend in calculate_monthly_trends(habit, history, today.year)
        ],
    }


def _day_payload(day_of_week: int) -> Optional[dict]:
    if day_of_week == NO_ACTIVE_DAY:
        return None
    return {"day_of_week": day_of_week, "day_name": day_name(day_of_week)}


__all__ = [
    "CompletionWrite",
    "HabitNotFoundError",
    "InactiveHabitError",
    "delete_completion",
    "habit_analytics",
    "parse_day",
    "period_window",
    "recompute_all",
    "record_completion",
    "record_completions_batch",
    "refresh_habit_streaks",
    "require_habit",
]
