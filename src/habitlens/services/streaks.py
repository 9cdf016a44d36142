"""Streak calculations over sparse completion histories.

All three streak views (current, all runs / best, historical periods) share
``iter_runs``: a run grows on each completed record and is closed either by a
record marked not completed or by a gap between adjacent records wider than
the habit's grace window (1, 7 or 31 days).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, Iterator, Mapping

from ..logging_config import get_logger
from .history import CompletionLike, HabitRule, completion_map, schedule_for
from .schedule import Repetition, Schedule, grace_window_for

logger = get_logger(__name__)

Rule = Schedule | Repetition | str


@dataclass(slots=True)
class StreakPeriod:
    """A closed run of consecutive successful records."""

    start_date: date
    end_date: date
    length: int

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "length": self.length,
        }


@dataclass(slots=True)
class StreakSummary:
    """Streak fields written back onto a habit after a recompute."""

    current_streak: int
    best_streak: int
    current_counter: int

    def to_dict(self) -> dict:
        return asdict(self)


def gap_exceeds(earlier: date, later: date, grace_days: int) -> bool:
    """True when two records are too far apart to belong to the same run."""

    return (later - earlier).days > grace_days


def iter_runs(history: Mapping[date, bool], grace_days: int) -> Iterator[StreakPeriod]:
    """Yield runs in chronological order."""

    start: date | None = None
    end: date | None = None
    length = 0
    previous: date | None = None

    for day in sorted(history):
        if previous is not None and length and gap_exceeds(previous, day, grace_days):
            yield StreakPeriod(start, end, length)  # type: ignore[arg-type]
            length = 0

        if history[day]:
            if length == 0:
                start = day
            end = day
            length += 1
        elif length:
            yield StreakPeriod(start, end, length)  # type: ignore[arg-type]
            length = 0

        previous = day

    if length:
        yield StreakPeriod(start, end, length)  # type: ignore[arg-type]


def calculate_current_streak(
    history: Mapping[date, bool], rule: Rule, *, today: date | None = None
) -> int:
    """Return the run ending at the most recent record, or 0 when it is stale.

    The history is stale when the most recent record is further from ``today``
    than the grace window; old perfect chains then count for nothing.
    """

    if not history:
        return 0

    today = today or date.today()
    grace_days = grace_window_for(rule)
    latest = max(history)
    if (today - latest).days > grace_days:
        logger.debug("Streak stale", extra={"latest": latest.isoformat(), "grace_days": grace_days})
        return 0

    last_run: StreakPeriod | None = None
    for last_run in iter_runs(history, grace_days):
        pass
    if last_run is None or last_run.end_date != latest:
        return 0
    return last_run.length


def calculate_all_streaks(history: Mapping[date, bool], rule: Rule) -> list[int]:
    """Return every run length in chronological order."""

    return [run.length for run in iter_runs(history, grace_window_for(rule))]


def calculate_best_streak(
    history: Mapping[date, bool], rule: Rule, *, previous_best: int = 0
) -> int:
    """Longest run seen, never lower than ``previous_best``."""

    return max([*calculate_all_streaks(history, rule), 0, previous_best])


def calculate_streak_periods(history: Mapping[date, bool], rule: Rule) -> list[StreakPeriod]:
    """Return runs with their boundary dates, longest first.

    Equal lengths keep chronological order.
    """

    runs = list(iter_runs(history, grace_window_for(rule)))
    return sorted(runs, key=lambda run: run.length, reverse=True)


def recompute_streaks(
    habit: HabitRule,
    completions: Iterable[CompletionLike],
    *,
    today: date | None = None,
) -> StreakSummary:
    """Compute the streak fields a habit should store after a write."""

    history = completion_map(completions)
    schedule = schedule_for(habit)
    current = calculate_current_streak(history, schedule, today=today)
    best = calculate_best_streak(history, schedule, previous_best=habit.best_streak or 0)
    counter = sum(1 for done in history.values() if done)
    return StreakSummary(current_streak=current, best_streak=best, current_counter=counter)


__all__ = [
    "StreakPeriod",
    "StreakSummary",
    "calculate_all_streaks",
    "calculate_best_streak",
    "calculate_current_streak",
    "calculate_streak_periods",
    "gap_exceeds",
    "iter_runs",
    "recompute_streaks",
]
