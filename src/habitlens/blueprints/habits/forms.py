"""Habit form definitions."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...services.habits import parse_day
from ...services.schedule import Repetition

_DAY_BOUNDS = {
    Repetition.WEEKLY: (0, 6),
    Repetition.MONTHLY: (1, 31),
}


class HabitForm(BaseModel):
    """Form model for creating a habit."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", description="Short label for the habit", max_length=80)
    description: str = Field(default="", description="Optional details about the habit", max_length=255)
    tag: str = Field(default="general", description="Grouping label used by reports", max_length=40)
    repetition: Repetition = Field(default=Repetition.DAILY, description="Habit frequency")
    specific_days: list[int] = Field(
        default_factory=list,
        description="Weekdays (0=Sunday) for weekly habits or month days for monthly habits",
    )
    goal_value: int = Field(default=1, ge=1, description="Target amount per day")
    is_active: bool = Field(default=True)
    created_at: date | None = Field(default=None, description="Defaults to today")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Ensure the habit name is present."""

        if not value:
            raise ValueError("Please provide a habit name.")
        return value

    @field_validator("tag")
    @classmethod
    def default_tag(cls, value: str) -> str:
        return value or "general"

    @field_validator("specific_days", mode="before")
    @classmethod
    def split_days(cls, value: str | Iterable[int] | None) -> list | Iterable[int]:
        """Accept comma-separated day strings as well as lists."""

        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, value):
        if value in (None, ""):
            return None
        return parse_day(value)

    @model_validator(mode="after")
    def check_specific_days(self) -> "HabitForm":
        """Days must fit the repetition; daily habits carry none."""

        if self.repetition is Repetition.DAILY:
            self.specific_days = []
            return self

        low, high = _DAY_BOUNDS[self.repetition]
        if not self.specific_days:
            raise ValueError(f"Select at least one day for a {self.repetition.value} habit.")
        out_of_range = [day for day in self.specific_days if not low <= day <= high]
        if out_of_range:
            raise ValueError(
                f"Days for a {self.repetition.value} habit must be between {low} and {high}."
            )
        self.specific_days = sorted(set(self.specific_days))
        return self


class CompletionForm(BaseModel):
    """A single completion write for one habit."""

    model_config = ConfigDict(populate_by_name=True)

    occurred_on: date = Field(alias="date", description="Calendar day in YYYY-MM-DD form")
    completed: bool = Field(default=True)

    @field_validator("occurred_on", mode="before")
    @classmethod
    def parse_occurred_on(cls, value):
        return parse_day(value)


class BatchCompletionItem(CompletionForm):
    habit_id: int


class BatchCompletionForm(BaseModel):
    """Several completion writes across habits."""

    completions: list[BatchCompletionItem] = Field(min_length=1)


__all__ = ["BatchCompletionForm", "BatchCompletionItem", "CompletionForm", "HabitForm"]
