"""Service module exports."""

from . import (
    analytics,
    habits,
    history,
    reports,
    schedule,
    streaks,
)

__all__ = [
    "analytics",
    "habits",
    "history",
    "reports",
    "schedule",
    "streaks",
]
