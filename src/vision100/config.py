"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

BACKEND_SQLITE = "sqlite"
BACKEND_POSTGRES = "postgres"
BACKEND_HOSTED = "hosted"
_BACKENDS = {BACKEND_SQLITE, BACKEND_POSTGRES, BACKEND_HOSTED}


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Vision100"
    DB_FILENAME = "vision100.db"
    MAX_GOALS_PER_USER = 100
    ADVISOR_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    DEBUG = False
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("VISION100_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("VISION100_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("VISION100_DATABASE_URL", "").strip()
        self.TABLE_SERVICE_URL = os.getenv("VISION100_TABLE_SERVICE_URL", "").strip()
        self.TABLE_SERVICE_KEY = os.getenv("VISION100_TABLE_SERVICE_KEY", "").strip()
        self.POSTGRES_SSLMODE = os.getenv("VISION100_POSTGRES_SSLMODE", "require")
        self.STORAGE_BACKEND = self._resolve_backend()
        if self.STORAGE_BACKEND == BACKEND_SQLITE and not self.DATABASE_URL:
            self.DATABASE_URL = self._build_sqlite_url()

        self.ADVISOR_API_KEY = os.getenv("VISION100_ADVISOR_API_KEY", "")
        self.ADVISOR_MODEL = os.getenv("VISION100_ADVISOR_MODEL", "gemini-2.5-flash")
        self.ADVISOR_TIMEOUT = _env_float("VISION100_ADVISOR_TIMEOUT", 30.0)
        self.STATIC_DIR = Path(os.getenv("VISION100_STATIC_DIR", "dist")).expanduser()

        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("VISION100_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("VISION100_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _resolve_backend(self) -> str:
        """Pick exactly one storage backend for the lifetime of the process."""

        explicit = os.getenv("VISION100_STORAGE_BACKEND", "").strip().lower()
        if explicit:
            if explicit not in _BACKENDS:
                raise ValueError(
                    f"VISION100_STORAGE_BACKEND must be one of {sorted(_BACKENDS)}, got {explicit!r}"
                )
            backend = explicit
        elif self.DATABASE_URL.startswith(("postgres://", "postgresql")):
            backend = BACKEND_POSTGRES
        elif self.TABLE_SERVICE_URL and self.TABLE_SERVICE_KEY:
            backend = BACKEND_HOSTED
        else:
            backend = BACKEND_SQLITE

        if backend == BACKEND_POSTGRES and not self.DATABASE_URL:
            raise ValueError("The postgres backend requires VISION100_DATABASE_URL.")
        if backend == BACKEND_HOSTED and not (self.TABLE_SERVICE_URL and self.TABLE_SERVICE_KEY):
            raise ValueError(
                "The hosted backend requires VISION100_TABLE_SERVICE_URL and "
                "VISION100_TABLE_SERVICE_KEY."
            )
        return backend

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_url(self) -> str:
        """Return the SQLAlchemy URL with the driver spelled out for postgres."""

        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            url = "postgresql+psycopg2://" + url[len("postgresql://"):]
        return url

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.STORAGE_BACKEND == BACKEND_POSTGRES:
            return {
                "pool_pre_ping": True,
                "connect_args": {"sslmode": self.POSTGRES_SSLMODE, "connect_timeout": 10},
            }
        return {"connect_args": {"check_same_thread": False}}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; never talks to the network."""

    __test__ = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.ADVISOR_API_KEY = "test-key"
        self.ADVISOR_TIMEOUT = 1.0


__all__ = [
    "BACKEND_HOSTED",
    "BACKEND_POSTGRES",
    "BACKEND_SQLITE",
    "BaseConfig",
    "DevConfig",
    "TestConfig",
]
