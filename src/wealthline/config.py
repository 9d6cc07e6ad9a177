"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Wealthline"
    DB_FILENAME = "wealthline.db"
    ENV_PREFIX = "WEALTHLINE_"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}
    DEFAULT_CURRENCY = ("$", "USD")

    def __init__(self, data_dir: str | Path | None = None) -> None:
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.DEV_MODE = _env_bool(f"{self.ENV_PREFIX}DEV_MODE", default=True)
        self.CHECKPOINTS_ENABLED = _env_bool(f"{self.ENV_PREFIX}CHECKPOINTS_ENABLED", default=True)
        self.LOG_LEVEL = os.getenv(f"{self.ENV_PREFIX}LOG_LEVEL", "INFO").upper()
        self.DATABASE_URL = os.getenv(
            f"{self.ENV_PREFIX}DATABASE_URL", self._build_sqlite_url()
        )

    def _resolve_data_dir(self, data_dir: str | Path | None) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = data_dir or os.getenv(f"{self.ENV_PREFIX}DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.is_sqlite:
            engine_options["connect_args"] = {"check_same_thread": False}
        else:
            engine_options["pool_pre_ping"] = True
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for test runs; always SQLite inside the given directory."""

    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: str | Path) -> None:
        super().__init__(data_dir)
        self.DEV_MODE = False
        self.DATABASE_URL = self._build_sqlite_url()
