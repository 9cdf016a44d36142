"""Blueprint exports."""

from . import analytics, habits

__all__ = [
    "analytics",
    "habits",
]
