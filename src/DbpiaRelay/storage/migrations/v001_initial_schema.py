"""Migration v001: initial schema (articles, query_cache)."""

from __future__ import annotations

from DbpiaRelay.storage.migration import Migration

MIGRATION = Migration(
    version=1,
    description="Initial schema: articles, query_cache",
    sql="""
        CREATE TABLE IF NOT EXISTS articles (
          id TEXT PRIMARY KEY,
          title TEXT,
          authors TEXT,
          journal TEXT,
          pub_year INTEGER,
          raw_json TEXT,
          created_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER)),
          updated_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER))
        );

        CREATE TABLE IF NOT EXISTS query_cache (
          cache_key TEXT PRIMARY KEY,
          tool TEXT NOT NULL,
          params_json TEXT NOT NULL,
          result_json TEXT NOT NULL,
          fetched_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER)),
          expires_at INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_articles_pub_year
          ON articles(pub_year);

        CREATE INDEX IF NOT EXISTS idx_query_cache_tool
          ON query_cache(tool);

        CREATE INDEX IF NOT EXISTS idx_query_cache_expires
          ON query_cache(expires_at)
    """,
)
