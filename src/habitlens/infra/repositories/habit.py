"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, Optional

from sqlmodel import Session, select

from ...models.habit import CompletionRecord, Habit
from ...services.streaks import StreakSummary


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, include_inactive: bool = False) -> list[Habit]:
        """List all habits, optionally including inactive ones."""
        with self.session_factory() as session:
            statement = select(Habit).order_by(Habit.name)  # type: ignore

            if not include_inactive:
                statement = statement.where(Habit.is_active == True)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_active(self) -> list[Habit]:
        """List only active habits."""
        return self.list_all(include_inactive=False)

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, habit_id: int) -> bool:
        """Delete a habit and its completions."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return False
            for record in session.exec(
                select(CompletionRecord).where(CompletionRecord.habit_id == habit_id)
            ).all():
                session.delete(record)
            session.delete(habit)
            session.commit()
            return True

    def save_streaks(self, habit_id: int, summary: StreakSummary) -> Optional[Habit]:
        """Write recomputed streak fields back onto a habit."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return None
            habit.current_streak = summary.current_streak
            habit.best_streak = summary.best_streak
            habit.current_counter = summary.current_counter
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    # Completion record operations
    def get_completion(self, habit_id: int, occurred_on: date) -> Optional[CompletionRecord]:
        """Get the record for a habit on a date."""
        with self.session_factory() as session:
            statement = (
                select(CompletionRecord)
                .where(CompletionRecord.habit_id == habit_id)
                .where(CompletionRecord.occurred_on == occurred_on)
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_completions(
        self,
        habit_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CompletionRecord]:
        """Get a habit's records, optionally limited to a date range."""
        return self.list_completions_for_habits([habit_id], start_date, end_date)

    def list_completions_for_habits(
        self,
        habit_ids: Iterable[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CompletionRecord]:
        """Get records for several habits at once, oldest first."""
        ids = list(habit_ids)
        if not ids:
            return []

        with self.session_factory() as session:
            statement = select(CompletionRecord).where(
                CompletionRecord.habit_id.in_(ids)  # type: ignore[attr-defined]
            )
            if start_date is not None:
                statement = statement.where(CompletionRecord.occurred_on >= start_date)
            if end_date is not None:
                statement = statement.where(CompletionRecord.occurred_on <= end_date)
            statement = statement.order_by(CompletionRecord.occurred_on)  # type: ignore

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def upsert_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Insert or update the record for (habit, date)."""
        with self.session_factory() as session:
            existing = session.exec(
                select(CompletionRecord)
                .where(CompletionRecord.habit_id == record.habit_id)
                .where(CompletionRecord.occurred_on == record.occurred_on)
            ).first()

            if existing:
                existing.completed = record.completed
                target = existing
            else:
                target = record
            session.add(target)
            session.commit()
            session.refresh(target)
            session.expunge(target)
            return target

    def delete_completion(self, habit_id: int, occurred_on: date) -> bool:
        """Delete a record; return whether one existed."""
        with self.session_factory() as session:
            record = session.exec(
                select(CompletionRecord)
                .where(CompletionRecord.habit_id == habit_id)
                .where(CompletionRecord.occurred_on == occurred_on)
            ).first()

            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True
