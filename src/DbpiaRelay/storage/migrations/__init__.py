"""Versioned migration files for DbpiaRelay's SQLite schema.

Each module in this package exposes a single ``MIGRATION`` constant of type
:class:`~DbpiaRelay.storage.migration.Migration` and is registered in
:func:`~DbpiaRelay.storage.migration.load_migrations`. File names follow the
``vNNN_<description>.py`` convention.
"""
