"""Migration v002: download and fulltext columns on articles.

These columns belong to the download/OCR collaborators; article upserts must
leave them untouched.
"""

from __future__ import annotations

from DbpiaRelay.storage.migration import Migration

MIGRATION = Migration(
    version=2,
    description="Add fulltext, pdf_path, download_status, downloaded_at to articles",
    sql="""
        ALTER TABLE articles ADD COLUMN fulltext TEXT;
        ALTER TABLE articles ADD COLUMN pdf_path TEXT;
        ALTER TABLE articles ADD COLUMN download_status TEXT;
        ALTER TABLE articles ADD COLUMN downloaded_at INTEGER
    """,
)
