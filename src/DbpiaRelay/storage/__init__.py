"""Storage layer for DbpiaRelay.

Provides database management, article persistence and the query cache.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from DbpiaRelay.storage.articles import ArticleRow, ArticleStore
from DbpiaRelay.storage.db import DatabaseManager
from DbpiaRelay.storage.migration import run_migrations
from DbpiaRelay.storage.query_cache import QueryCacheStore, compute_expires_at, make_cache_key
from DbpiaRelay.utils.log import log

if TYPE_CHECKING:
    from DbpiaRelay.config import AppConfig


def create_storage(config: AppConfig) -> tuple[DatabaseManager, ArticleStore, QueryCacheStore]:
    """Open the database and build the stores that share its connection.

    Args:
        config: Application configuration containing storage settings.

    Returns:
        Tuple of (db_manager, article_store, cache_store).
    """
    db_path = Path(config.storage.db_path)
    db_manager = DatabaseManager(db_path)
    log.info("Storage opened: %s", db_path)
    return db_manager, ArticleStore(db_manager), QueryCacheStore(db_manager)


__all__ = [
    "ArticleRow",
    "ArticleStore",
    "DatabaseManager",
    "QueryCacheStore",
    "compute_expires_at",
    "create_storage",
    "make_cache_key",
    "run_migrations",
]
