"""Versioned schema migrations for the relay database.

:class:`~DbpiaRelay.storage.db.DatabaseManager` calls :func:`run_migrations`
on every open. The applied version lives in a one-row ``schema_version`` table;
each pending migration runs in its own transaction and bumps that row only
when all of its statements succeed.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Sequence

from DbpiaRelay.utils.log import log

_SCHEMA_VERSION_DDL = """
CREATE TABLE IF NOT EXISTS schema_version (
    id      INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL
)
"""


@dataclass(frozen=True)
class Migration:
    """One schema step.

    Attributes:
        version: Position in the chain, starting at 1 with no gaps.
        description: Short summary used in logs.
        sql: Semicolon-separated statements. Statement text must not contain
            literal semicolons.
    """

    version: int
    description: str
    sql: str

    def statements(self) -> list[str]:
        """Split ``sql`` into individual non-empty statements."""
        return [part.strip() for part in self.sql.split(";") if part.strip()]


def load_migrations() -> list[Migration]:
    """Return registered migrations ordered by version."""
    from DbpiaRelay.storage.migrations import v001_initial_schema, v002_article_download_columns

    modules = (v001_initial_schema, v002_article_download_columns)
    return sorted((module.MIGRATION for module in modules), key=lambda m: m.version)


def current_version(conn: sqlite3.Connection) -> int:
    """Return the applied schema version, 0 for a database never migrated."""
    conn.execute(_SCHEMA_VERSION_DDL)
    conn.commit()
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def run_migrations(conn: sqlite3.Connection) -> None:
    """Bring the database up to the latest registered version.

    Args:
        conn: Open SQLite connection outside any transaction.

    Raises:
        ValueError: If the registered versions are not 1..N.
        sqlite3.Error: If a statement fails; that migration is rolled back and
            the stored version stays at the last successful step.
    """
    migrations = load_migrations()
    _check_contiguous(migrations)

    applied = current_version(conn)
    pending = [m for m in migrations if m.version > applied]
    if not pending:
        log.debug("Schema up to date at v%d", applied)
        return

    for migration in pending:
        _apply(conn, migration)
        log.info("Applied migration v%d: %s", migration.version, migration.description)


def _check_contiguous(migrations: Sequence[Migration]) -> None:
    for expected, migration in enumerate(migrations, start=1):
        if migration.version != expected:
            raise ValueError(
                f"Migration versions must be contiguous from 1: expected v{expected}, "
                f"found v{migration.version} ({migration.description!r})"
            )


def _apply(conn: sqlite3.Connection, migration: Migration) -> None:
    """Run one migration atomically.

    Statements go through ``execute`` one at a time; ``executescript`` would
    commit implicitly and split the migration across transactions.
    """
    conn.execute("BEGIN")
    try:
        for statement in migration.statements():
            conn.execute(statement)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (id, version) VALUES (1, ?)",
            (migration.version,),
        )
    except sqlite3.Error:
        conn.execute("ROLLBACK")
        log.error("Migration v%d failed and was rolled back", migration.version)
        raise
    conn.execute("COMMIT")
