"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from wealthline import config as config_module
from wealthline.config import BaseConfig, _env_bool


@pytest.mark.parametrize("raw, expected", [("1", True), ("Yes", True), (" on ", True), ("0", False), ("off", False)])
def test_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("WEALTHLINE_FLAG", raw)

    assert _env_bool("WEALTHLINE_FLAG") is expected


def test_env_bool_default(monkeypatch):
    monkeypatch.delenv("WEALTHLINE_FLAG", raising=False)

    assert _env_bool("WEALTHLINE_FLAG", default=True) is True


def test_defaults_use_sqlite_in_data_dir(monkeypatch, tmp_path):
    for name in ("DATABASE_URL", "CHECKPOINTS_ENABLED", "LOG_LEVEL", "DEV_MODE"):
        monkeypatch.delenv(f"WEALTHLINE_{name}", raising=False)

    config = BaseConfig(tmp_path / "data")

    assert config.DATA_DIR == (tmp_path / "data").resolve()
    assert config.DATA_DIR.is_dir()
    assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'wealthline.db'}"
    assert config.is_sqlite
    assert config.CHECKPOINTS_ENABLED is True
    assert config.LOG_LEVEL == "INFO"
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("WEALTHLINE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("WEALTHLINE_DATABASE_URL", "postgresql://localhost/wealthline")
    monkeypatch.setenv("WEALTHLINE_CHECKPOINTS_ENABLED", "false")
    monkeypatch.setenv("WEALTHLINE_LOG_LEVEL", "debug")

    config = BaseConfig()

    assert config.DATA_DIR == tmp_path.resolve()
    assert not config.is_sqlite
    assert config.CHECKPOINTS_ENABLED is False
    assert config.LOG_LEVEL == "DEBUG"
    assert config.sqlalchemy_engine_options() == {"pool_pre_ping": True}


def test_test_config_ignores_database_url(monkeypatch, tmp_path):
    monkeypatch.setenv("WEALTHLINE_DATABASE_URL", "postgresql://localhost/wealthline")

    config = config_module.TestConfig(tmp_path)

    assert config.is_sqlite
    assert config.DEV_MODE is False


def test_disabled_checkpoints_reach_the_snapshot_manager(monkeypatch, tmp_path):
    from wealthline.context import create_app_context

    monkeypatch.setenv("WEALTHLINE_CHECKPOINTS_ENABLED", "0")

    ctx = create_app_context(config_module.TestConfig(tmp_path))
    try:
        assert ctx.snapshot_manager.enabled is False
    finally:
        ctx.dispose()
