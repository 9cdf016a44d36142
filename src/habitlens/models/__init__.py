"""SQLModel table exports."""

from .habit import CompletionRecord, Habit

__all__ = [
    "CompletionRecord",
    "Habit",
]
