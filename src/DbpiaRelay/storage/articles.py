"""Article storage implementation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence

from DbpiaRelay.core.models import NormalizedArticle, thaw
from DbpiaRelay.utils.log import log

if TYPE_CHECKING:
    from DbpiaRelay.storage.db import DatabaseManager


@dataclass(frozen=True, slots=True)
class ArticleRow:
    """One persisted article row.

    Timestamps are UTC epoch seconds.
    """

    id: str
    title: str
    authors: tuple[str, ...]
    journal: Optional[str]
    pub_year: Optional[int]
    raw_json: dict[str, Any]
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    fulltext: Optional[str] = None
    pdf_path: Optional[str] = None
    download_status: Optional[str] = None
    downloaded_at: Optional[int] = None

    def to_article(self) -> NormalizedArticle:
        """Project the row back onto the normalized article shape."""
        return NormalizedArticle(
            id=self.id,
            title=self.title,
            authors=self.authors,
            year=str(self.pub_year) if self.pub_year else None,
            publisher=self.journal,
            raw_json=self.raw_json,
        )


class ArticleStore:
    """SQLite-backed store of normalized articles keyed by stable id."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize article store.

        Args:
            db_manager: Shared database manager instance.
        """
        log.debug("Initializing ArticleStore")
        self.conn = db_manager.get_connection()
        self.read_conn = db_manager.get_read_connection()

    def upsert_articles(self, articles: Sequence[NormalizedArticle]) -> None:
        """Insert articles or refresh their metadata.

        The update path only overwrites title, authors, journal, pub_year,
        raw_json and updated_at, so download/fulltext columns survive refetches.
        Does not commit; run inside :meth:`DatabaseManager.transaction`.

        Args:
            articles: Articles to persist.
        """
        if not articles:
            return

        self.conn.executemany(
            """
            INSERT INTO articles (id, title, authors, journal, pub_year, raw_json, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, CAST(strftime('%s','now') AS INTEGER))
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                authors = excluded.authors,
                journal = excluded.journal,
                pub_year = excluded.pub_year,
                raw_json = excluded.raw_json,
                updated_at = excluded.updated_at
            """,
            [
                (
                    article.id,
                    article.title,
                    json.dumps(list(article.authors), ensure_ascii=False),
                    article.publisher,
                    _parse_year(article.year),
                    json.dumps(thaw(article.raw_json), ensure_ascii=False),
                )
                for article in articles
            ],
        )
        log.debug("Upserted %d articles", len(articles))

    def get_article(self, article_id: str) -> ArticleRow | None:
        """Fetch one article by id.

        Args:
            article_id: Stable article id.

        Returns:
            The row, or None when absent.
        """
        row = self.read_conn.execute("SELECT * FROM articles WHERE id = ?", (article_id,)).fetchone()
        return _row_to_article(row) if row else None

    def search_local(self, query: str, *, limit: int | None = None) -> list[ArticleRow]:
        """Substring search over persisted articles.

        Matches title, authors and raw_json; newest publication year first.

        Args:
            query: Search text; blank input returns no rows.
            limit: Optional maximum number of rows.

        Returns:
            Matching rows.
        """
        if not query or not query.strip():
            return []

        like = f"%{query.strip()}%"
        sql = """
            SELECT * FROM articles
            WHERE title LIKE ? OR authors LIKE ? OR raw_json LIKE ?
            ORDER BY pub_year DESC, updated_at DESC
        """
        params: list[Any] = [like, like, like]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = self.read_conn.execute(sql, params).fetchall()
        log.debug("Local search %r matched %d articles", query, len(rows))
        return [_row_to_article(row) for row in rows]


def _row_to_article(row) -> ArticleRow:
    """Convert a sqlite3.Row into an ArticleRow."""
    keys = row.keys()
    return ArticleRow(
        id=row["id"],
        title=row["title"] or "",
        authors=tuple(json.loads(row["authors"] or "[]")),
        journal=row["journal"],
        pub_year=row["pub_year"],
        raw_json=json.loads(row["raw_json"] or "{}"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        fulltext=row["fulltext"] if "fulltext" in keys else None,
        pdf_path=row["pdf_path"] if "pdf_path" in keys else None,
        download_status=row["download_status"] if "download_status" in keys else None,
        downloaded_at=row["downloaded_at"] if "downloaded_at" in keys else None,
    )


def _parse_year(year: str | None) -> int | None:
    """Convert a year string into an integer column value."""
    if not year:
        return None
    try:
        return int(year[:4])
    except ValueError:
        return None
