"""Tests for configuration objects and the application factory."""

from __future__ import annotations

import pytest

from habitlens import create_app
from habitlens import config as habitlens_config
from habitlens.config import BaseConfig, DevConfig


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HABITLENS_DATA_DIR", str(tmp_path))
    for name in (
        "HABITLENS_SECRET_KEY",
        "HABITLENS_DEV_MODE",
        "HABITLENS_DATABASE_URL",
        "HABITLENS_DEFAULT_PERIOD",
        "HABITLENS_TEST_DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    config = BaseConfig()

    assert config.DATA_DIR == tmp_path.resolve()
    assert config.DATABASE_URL == f"sqlite:///{tmp_path.resolve() / 'habitlens.db'}"
    assert config.DEFAULT_PERIOD == "30days"
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("HABITLENS_DATABASE_URL", "postgresql://habits@db/habitlens")
    monkeypatch.setenv("HABITLENS_DEFAULT_PERIOD", "90days")

    config = DevConfig()

    assert config.DEBUG is True
    assert config.DEFAULT_PERIOD == "90days"
    assert config.sqlalchemy_engine_options() == {}


def test_invalid_default_period(monkeypatch):
    monkeypatch.setenv("HABITLENS_DEFAULT_PERIOD", "fortnight")

    with pytest.raises(ValueError, match="HABITLENS_DEFAULT_PERIOD"):
        BaseConfig()


@pytest.mark.parametrize("flag", ["0", "false", "no", "off"])
def test_placeholder_secret_rejected_outside_dev(monkeypatch, flag):
    monkeypatch.setenv("HABITLENS_DEV_MODE", flag)

    with pytest.raises(ValueError, match="HABITLENS_SECRET_KEY"):
        BaseConfig()


def test_real_secret_accepted_outside_dev(monkeypatch):
    monkeypatch.setenv("HABITLENS_DEV_MODE", "false")
    monkeypatch.setenv("HABITLENS_SECRET_KEY", "s3cret")

    assert BaseConfig().SECRET_KEY == "s3cret"


def test_testing_config_uses_memory_database():
    config = habitlens_config.TestingConfig()

    assert config.TESTING is True
    assert config.DATABASE_URL == "sqlite://"
    assert "poolclass" in config.sqlalchemy_engine_options()


def test_create_app_resolves_config():
    app = create_app("testing")

    assert app.config["TESTING"] is True
    assert isinstance(app.config["HABITLENS_CONFIG"], habitlens_config.TestingConfig)
    assert "habits" in app.blueprints
    assert "analytics" in app.blueprints
    assert "habitlens_engine" in app.extensions
