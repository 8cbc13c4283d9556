"""Tests for schema migration mechanism.

Covers fresh databases, re-runs at the latest version, new migrations on an
existing database, rollback on broken SQL and version-gap validation.
"""

import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

import DbpiaRelay.storage.migration as migration_module
from DbpiaRelay.storage.migration import Migration, load_migrations, run_migrations

MIGRATIONS = load_migrations()
_LATEST_VERSION = max(m.version for m in MIGRATIONS)


def _connect(path: Path) -> sqlite3.Connection:
    return sqlite3.connect(str(path))


def _current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def _table_names(conn: sqlite3.Connection) -> set[str]:
    return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()}


def _column_names(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


class _MigrationTestCase(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "relay.db")

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def _with_migrations(self, migrations):
        return patch.object(migration_module, "load_migrations", return_value=migrations)


class TestFreshDatabase(_MigrationTestCase):
    def test_schema_version_equals_latest(self):
        run_migrations(self._conn)
        self.assertEqual(_current_version(self._conn), _LATEST_VERSION)

    def test_main_tables_created(self):
        run_migrations(self._conn)
        tables = _table_names(self._conn)
        for name in ("articles", "query_cache", "schema_version"):
            with self.subTest(table=name):
                self.assertIn(name, tables)

    def test_download_columns_added(self):
        run_migrations(self._conn)
        columns = _column_names(self._conn, "articles")
        for name in ("fulltext", "pdf_path", "download_status", "downloaded_at"):
            with self.subTest(column=name):
                self.assertIn(name, columns)


class TestAlreadyUpToDate(_MigrationTestCase):
    def test_second_run_is_a_no_op(self):
        run_migrations(self._conn)
        tables_before = _table_names(self._conn)
        run_migrations(self._conn)
        self.assertEqual(_current_version(self._conn), _LATEST_VERSION)
        self.assertEqual(_table_names(self._conn), tables_before)


class TestNewMigration(_MigrationTestCase):
    def setUp(self):
        super().setUp()
        run_migrations(self._conn)
        self._conn.execute("INSERT INTO articles (id, title) VALUES (?, ?)", ("A1", "Before upgrade"))
        self._conn.commit()
        self._next = Migration(
            version=_LATEST_VERSION + 1,
            description="Add tags column to articles",
            sql="ALTER TABLE articles ADD COLUMN tags TEXT;",
        )

    def test_new_migration_applied_and_data_preserved(self):
        with self._with_migrations(MIGRATIONS + [self._next]):
            run_migrations(self._conn)

        self.assertEqual(_current_version(self._conn), _LATEST_VERSION + 1)
        row = self._conn.execute("SELECT title, tags FROM articles WHERE id = 'A1'").fetchone()
        self.assertEqual(row[0], "Before upgrade")
        self.assertIsNone(row[1])


class TestRollbackOnError(_MigrationTestCase):
    def test_broken_migration_leaves_version_unchanged(self):
        run_migrations(self._conn)
        broken = Migration(
            version=_LATEST_VERSION + 1,
            description="Intentionally broken migration",
            sql="ALTER TABLE articles ADD COLUMN ok TEXT; THIS IS NOT VALID SQL;",
        )

        with self._with_migrations(MIGRATIONS + [broken]):
            with self.assertRaises(sqlite3.Error):
                run_migrations(self._conn)

        self.assertEqual(_current_version(self._conn), _LATEST_VERSION)
        self.assertNotIn("ok", _column_names(self._conn, "articles"))


class TestVersionContinuityValidation(_MigrationTestCase):
    def test_gap_raises_value_error(self):
        gap = Migration(version=_LATEST_VERSION + 2, description="Gap migration", sql="SELECT 1;")
        with self._with_migrations(MIGRATIONS + [gap]):
            with self.assertRaises(ValueError):
                run_migrations(self._conn)


if __name__ == "__main__":
    unittest.main()
