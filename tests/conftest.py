"""Pytest configuration and shared fixtures for HabitLens tests.

This module provides database fixtures, test data factories, and a Flask test
client for exercising the engine, repositories, services and routes without
touching a real application database.
"""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitlens.models import CompletionRecord, Habit
from habitlens.infra.repositories.habit import SQLModelHabitRepository

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for repositories that expect Callable[[], Session]."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def repository(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(db_session):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        repetition: str = "daily",
        specific_days: list[int] | None = None,
        tag: str = "general",
        is_active: bool = True,
        created_at: date = date(2024, 1, 1),
        best_streak: int = 0,
    ) -> Habit:
        """Create a test habit with sensible defaults.

        Args:
            name: Habit name
            repetition: 'daily', 'weekly' or 'monthly'
            specific_days: Weekdays (0=Sunday) or month days for the rule
            created_at: Creation date; defaults well before the test dates

        Returns:
            Habit: Persisted habit instance
        """
        habit = Habit(
            name=name,
            repetition=repetition,
            specific_days=list(specific_days or []),
            tag=tag,
            is_active=is_active,
            created_at=created_at,
            best_streak=best_streak,
        )
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def completion_factory(db_session):
    """Factory for creating completion records.

    Returns:
        Callable: Function that persists one record per (habit, day)
    """

    def _create_completion(habit: Habit, occurred_on: date, completed: bool = True) -> CompletionRecord:
        record = CompletionRecord(habit_id=habit.id, occurred_on=occurred_on, completed=completed)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _create_completion


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Application bound to a fresh in-memory database and a temp data dir."""

    monkeypatch.setenv("HABITLENS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("HABITLENS_TEST_DATABASE_URL", raising=False)
    monkeypatch.delenv("HABITLENS_DEFAULT_PERIOD", raising=False)
    monkeypatch.delenv("HABITLENS_DEV_MODE", raising=False)

    from habitlens import create_app

    return create_app("testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_repository(app) -> SQLModelHabitRepository:
    """Repository sharing the application's engine."""

    from habitlens.extensions import session_factory as app_session_factory

    return SQLModelHabitRepository(app_session_factory)


# =============================================================================
# Helper Functions
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert two floats are equal within tolerance."""
    assert abs(actual - expected) < tolerance, f"Expected {expected}, got {actual}"
