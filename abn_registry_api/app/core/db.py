"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations on application start
(``init_db``).  Two tables back the API: ``abn_records`` (the Record
Store) and ``abn_names`` (the Name Store).  Names reference records
by ABN value only; there is no ``FOREIGN KEY`` between
them, the services check the reference at write time.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from .config import settings

# Largest value SQLite can bind as an INTEGER.
SQLITE_MAX_INTEGER = 2**63 - 1


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS abn_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            abn TEXT NOT NULL UNIQUE,
            status TEXT NOT NULL DEFAULT 'Active',
            abn_status_from_date TEXT,
            entity_type_code TEXT,
            entity_type_text TEXT,
            legal_name TEXT,
            organisation_name TEXT,
            acn TEXT,
            gst_status TEXT NOT NULL DEFAULT 'Cancelled',
            gst_from_date TEXT,
            state TEXT,
            postcode TEXT,
            last_updated TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS abn_names (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            abn TEXT NOT NULL,
            name TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'BusinessName',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE(abn, name, type)
        );
        """,
    ),
    # Migration 2: secondary indices used by filters, sorting and stats
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_abn_records_status ON abn_records(status);
        CREATE INDEX IF NOT EXISTS idx_abn_records_entity_type_code ON abn_records(entity_type_code);
        CREATE INDEX IF NOT EXISTS idx_abn_records_state ON abn_records(state);
        CREATE INDEX IF NOT EXISTS idx_abn_records_last_updated ON abn_records(last_updated DESC);
        CREATE INDEX IF NOT EXISTS idx_abn_records_created_at ON abn_records(created_at DESC);
        CREATE INDEX IF NOT EXISTS idx_abn_names_abn ON abn_names(abn);
        CREATE INDEX IF NOT EXISTS idx_abn_names_type ON abn_names(type);
        CREATE INDEX IF NOT EXISTS idx_abn_names_created_at ON abn_names(created_at DESC);
        """,
    ),
]


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the package root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # abn_registry_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Values come back exactly as stored (timestamps are ISO
    strings).  ``py_lower(x)`` is available in SQL and lower-cases
    with Python's Unicode rules; the built-in ``lower()`` and ``LIKE``
    only fold ASCII.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.create_function("py_lower", 1, _lower, deterministic=True)
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision.

    Fixed width, so lexical order of stored values is chronological.
    """
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any newer entries of
    ``MIGRATIONS``.  To change the schema, append a migration with an
    incremented version number.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
