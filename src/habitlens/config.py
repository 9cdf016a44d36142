"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

ANALYTICS_PERIODS = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
    "365days": 365,
}


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitLens"
    DB_FILENAME = "habitlens.db"
    TESTING = False
    TOP_STREAKS = 3
    MOST_CONSISTENT_LIMIT = 5

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("HABITLENS_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("HABITLENS_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("HABITLENS_DATABASE_URL", self._build_sqlite_url())
        self.DEFAULT_PERIOD = os.getenv("HABITLENS_DEFAULT_PERIOD", "30days")
        if self.DEFAULT_PERIOD not in ANALYTICS_PERIODS:
            raise ValueError(
                f"HABITLENS_DEFAULT_PERIOD must be one of {', '.join(ANALYTICS_PERIODS)}."
            )
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("HABITLENS_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the SQLite file and logs."""

        data_root = os.getenv("HABITLENS_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestingConfig(BaseConfig):
    """Isolated configuration for the test suite."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = os.getenv("HABITLENS_TEST_DATABASE_URL", "sqlite://")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        options = super().sqlalchemy_engine_options()
        if self.DATABASE_URL == "sqlite://":
            # Share the single in-memory database across threads/sessions.
            from sqlalchemy.pool import StaticPool

            options["poolclass"] = StaticPool
        return options
