"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from ...models.habit import CompletionRecord, Habit
from ...services.streaks import StreakSummary


class HabitRepository(Protocol):
    """Repository for managing habits and their completion records."""

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self, include_inactive: bool = False) -> list[Habit]:
        """List all habits, optionally including inactive ones."""
        ...

    def list_active(self) -> list[Habit]:
        """List only active habits."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: int) -> bool:
        """Delete a habit and its completions."""
        ...

    def save_streaks(self, habit_id: int, summary: StreakSummary) -> Optional[Habit]:
        """Write recomputed streak fields back onto a habit."""
        ...

    # Completion record operations
    def get_completion(self, habit_id: int, occurred_on: date) -> Optional[CompletionRecord]:
        """Get the record for a habit on a date."""
        ...

    def list_completions(
        self,
        habit_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CompletionRecord]:
        """Get a habit's records, optionally limited to a date range."""
        ...

    def list_completions_for_habits(
        self,
        habit_ids: Iterable[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CompletionRecord]:
        """Get records for several habits at once."""
        ...

    def upsert_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Insert or update the record for (habit, date)."""
        ...

    def delete_completion(self, habit_id: int, occurred_on: date) -> bool:
        """Delete a record; return whether one existed."""
        ...
