"""Engine input shapes and completion-history normalisation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol, Sequence

from .schedule import Repetition, Schedule, as_date, build_schedule


class HabitRule(Protocol):
    """Habit-shaped record the engine reads."""

    repetition: Repetition | str
    specific_days: Sequence[int] | None
    created_at: date
    best_streak: int


class CompletionLike(Protocol):
    """Completion-shaped record the engine reads."""

    occurred_on: date | str
    completed: bool


@dataclass(slots=True)
class Completion:
    """Plain completion record, handy when no database row is involved."""

    occurred_on: date | str
    completed: bool = True


def schedule_for(habit: HabitRule) -> Schedule:
    return build_schedule(habit.repetition, habit.specific_days)


def completion_map(completions: Iterable[CompletionLike]) -> dict[date, bool]:
    """Collapse records into a date -> completed lookup.

    Later records for the same date replace earlier ones.
    """

    history: dict[date, bool] = {}
    for record in completions:
        history[as_date(record.occurred_on)] = bool(record.completed)
    return history


def completed_in_range(history: dict[date, bool], start: date, end: date) -> int:
    """Count ``completed`` entries dated within ``[start, end]``."""

    return sum(1 for day, done in history.items() if done and start <= day <= end)


__all__ = [
    "Completion",
    "CompletionLike",
    "HabitRule",
    "completed_in_range",
    "completion_map",
    "schedule_for",
]
