"""Concrete storage backends and the startup-time selector."""

from __future__ import annotations

from ...config import BACKEND_HOSTED, BACKEND_POSTGRES, BaseConfig
from ...logging_config import get_logger
from ..database import create_db_engine, mask_url
from .hosted import HostedTableStore
from .relational import PostgresStore, SQLiteStore, SQLModelStore

logger = get_logger(__name__)


def build_store(config: BaseConfig) -> SQLModelStore | HostedTableStore:
    """Construct the one backend named by ``config.STORAGE_BACKEND``."""

    if config.STORAGE_BACKEND == BACKEND_HOSTED:
        store: SQLModelStore | HostedTableStore = HostedTableStore(
            config.TABLE_SERVICE_URL, config.TABLE_SERVICE_KEY
        )
        target = config.TABLE_SERVICE_URL
    elif config.STORAGE_BACKEND == BACKEND_POSTGRES:
        store = PostgresStore(create_db_engine(config))
        target = mask_url(config.DATABASE_URL)
    else:
        store = SQLiteStore(create_db_engine(config))
        target = config.DATABASE_URL
    logger.info("Storage backend selected", extra={"backend": store.name, "target": target})
    return store


__all__ = [
    "HostedTableStore",
    "PostgresStore",
    "SQLModelStore",
    "SQLiteStore",
    "build_store",
]
