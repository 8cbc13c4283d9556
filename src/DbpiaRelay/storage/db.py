"""SQLite database utilities."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from DbpiaRelay.storage.migration import run_migrations


class DatabaseManager:
    """Owner of the SQLite connections for one pipeline.

    Writes go through :meth:`get_connection` and reads through
    :meth:`get_read_connection`, a second connection that only ever sees
    committed rows. Both are opened with ``check_same_thread=False`` because
    storage calls run in worker threads; write sequences must still be
    serialized by the caller (see :class:`~DbpiaRelay.infra.mutex.FifoMutex`).

    Supports context manager protocol for automatic connection cleanup.
    """

    def __init__(self, db_path: Path):
        """Open (and migrate) the database.

        Args:
            db_path: Path to database file; parent directories are created.
        """
        self.db_path = db_path
        self.conn = ensure_db(db_path)
        self.conn.execute("PRAGMA journal_mode = WAL")
        run_migrations(self.conn)
        self.read_conn = ensure_db(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get the write connection shared by the stores.

        Returns:
            SQLite connection.
        """
        return self.conn

    def get_read_connection(self) -> sqlite3.Connection:
        """Get the read-only-use connection; uncommitted writes are invisible to it."""
        return self.read_conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block of writes atomically.

        Commits when the block exits normally and rolls back when it raises.

        Yields:
            The shared connection.
        """
        with self.conn:
            yield self.conn

    def close(self) -> None:
        """Close both database connections."""
        if getattr(self, "read_conn", None) is not None:
            self.read_conn.close()
            self.read_conn = None
        if getattr(self, "conn", None) is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> DatabaseManager:
        """Enter context manager.

        Returns:
            Self for use in with statement.
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager and close connection."""
        self.close()


def ensure_db(db_path: Path) -> sqlite3.Connection:
    """Ensure database file exists and return connection.

    Args:
        db_path: Absolute path or project-relative path to database file.

    Returns:
        SQLite connection.

    Raises:
        OSError: If directory creation fails.
        sqlite3.Error: If database connection fails.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
