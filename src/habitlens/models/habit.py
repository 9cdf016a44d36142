"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


class Habit(SQLModel, table=True):
    """A user-defined habit with its recurrence rule and stored streak fields."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    tag: str = Field(default="general", max_length=40, index=True)
    repetition: str = Field(default="daily", max_length=16)
    specific_days: list[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    goal_value: int = Field(default=1, nullable=False)
    current_streak: int = Field(default=0, nullable=False)
    best_streak: int = Field(default=0, nullable=False)
    current_counter: int = Field(default=0, nullable=False)
    is_active: bool = Field(default=True, nullable=False, index=True)
    created_at: date = Field(default_factory=date.today, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tag": self.tag,
            "repetition": self.repetition,
            "specific_days": sorted(self.specific_days or []),
            "goal_value": self.goal_value,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "current_counter": self.current_counter,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }


class CompletionRecord(SQLModel, table=True):
    """Completion state of a habit on one calendar day.

    ``completed`` False means explicitly marked not done, which differs from
    having no record at all.
    """

    __tablename__: ClassVar[str] = "completion_record"
    __table_args__ = (UniqueConstraint("habit_id", "occurred_on", name="uq_completion_habit_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    occurred_on: date = Field(nullable=False, index=True)
    completed: bool = Field(default=True, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "habit_id": self.habit_id,
            "date": self.occurred_on.isoformat(),
            "completed": self.completed,
        }
