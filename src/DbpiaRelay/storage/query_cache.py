"""Query cache storage implementation.

Maps a canonical request fingerprint to a serialized :class:`QueryResult` with
an expiry. Expired rows are ignored by reads but never deleted here.
"""

from __future__ import annotations

import hashlib
import json
import time
from typing import TYPE_CHECKING, Any, Mapping

from DbpiaRelay.core.models import CacheRecord
from DbpiaRelay.utils.log import log

if TYPE_CHECKING:
    from DbpiaRelay.storage.db import DatabaseManager

DEFAULT_PAGE = 1
DEFAULT_PAGECOUNT = 20
DEFAULT_TTL_DAYS = 7
_SECONDS_PER_DAY = 86400


def make_cache_key(
    *,
    tool: str,
    target: str,
    params: Mapping[str, Any],
    page: int | None = None,
    pagecount: int | None = None,
) -> str:
    """Build the cache key of a request.

    Parameters are sorted by key and ``page``/``pagecount`` defaulted so that
    logically identical requests collide regardless of argument order.

    Returns:
        SHA-256 hex digest of the canonical request JSON.
    """
    canonical = {
        "tool": tool,
        "target": target,
        "params": {key: params[key] for key in sorted(params)},
        "page": page if page is not None else DEFAULT_PAGE,
        "pagecount": pagecount if pagecount is not None else DEFAULT_PAGECOUNT,
    }
    payload = json.dumps(canonical, ensure_ascii=False, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def compute_expires_at(ttl_days: float = DEFAULT_TTL_DAYS, *, now: int | None = None) -> int:
    """Return the expiry timestamp ``ttl_days`` after ``now`` (epoch seconds)."""
    base = int(time.time()) if now is None else now
    return base + int(ttl_days * _SECONDS_PER_DAY)


class QueryCacheStore:
    """SQLite-backed query cache."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize query cache store.

        Args:
            db_manager: Shared database manager instance.
        """
        log.debug("Initializing QueryCacheStore")
        self.conn = db_manager.get_connection()
        self.read_conn = db_manager.get_read_connection()

    def get(self, cache_key: str, *, now: int | None = None) -> CacheRecord | None:
        """Look up a live cache record.

        Args:
            cache_key: Key from :func:`make_cache_key`.
            now: Reference time in epoch seconds (defaults to current time).

        Returns:
            The record, or None when missing or expired.
        """
        reference = int(time.time()) if now is None else now
        row = self.read_conn.execute(
            """
            SELECT cache_key, tool, params_json, result_json, fetched_at, expires_at
            FROM query_cache
            WHERE cache_key = ? AND expires_at > ?
            """,
            (cache_key, reference),
        ).fetchone()
        if row is None:
            return None
        return CacheRecord(
            cache_key=row["cache_key"],
            tool=row["tool"],
            params_json=row["params_json"],
            result_json=row["result_json"],
            fetched_at=row["fetched_at"],
            expires_at=row["expires_at"],
        )

    def set(self, record: CacheRecord) -> None:
        """Insert or fully overwrite a cache record.

        Does not commit; run inside :meth:`DatabaseManager.transaction`.

        Args:
            record: Record to store. ``fetched_at`` defaults to now.
        """
        fetched_at = record.fetched_at if record.fetched_at is not None else int(time.time())
        self.conn.execute(
            """
            INSERT INTO query_cache (cache_key, tool, params_json, result_json, fetched_at, expires_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET
                tool = excluded.tool,
                params_json = excluded.params_json,
                result_json = excluded.result_json,
                fetched_at = excluded.fetched_at,
                expires_at = excluded.expires_at
            """,
            (
                record.cache_key,
                record.tool,
                record.params_json,
                record.result_json,
                fetched_at,
                record.expires_at,
            ),
        )
        log.debug("Cached result for tool=%s key=%s", record.tool, record.cache_key[:12])
