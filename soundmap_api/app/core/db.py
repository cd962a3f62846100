"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations on application start
(``init_db``).  Each connection registers a ``distance_m`` SQL
function so that services can express "within N metres of a point"
directly in a ``WHERE`` clause.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import math
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .config import settings


EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great‑circle distance in metres between two (lng, lat) points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def utcnow_iso() -> str:
    """Current UTC time as an ISO‑8601 string.

    Timestamps are stored as text; ISO‑8601 keeps lexical and
    chronological order identical, which the ``created_at`` filters and
    sorts rely on.
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # soundmap_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` objects keyed by column name,
    foreign keys are enforced and the ``distance_m`` function is
    available to queries.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.create_function("distance_m", 4, haversine_m, deterministic=True)
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


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations.  To change
    the schema append a migration with an incremented version number.
    """
    migrations: list[tuple[int, str]] = [
        # Migration 1: Initial schema
        (
            1,
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                email TEXT NOT NULL UNIQUE,
                password TEXT NOT NULL,
                is_admin INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                color TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS sounds (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                category_id INTEGER NOT NULL,
                longitude REAL NOT NULL,
                latitude REAL NOT NULL,
                audio BLOB NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'application/octet-stream',
                created_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id),
                FOREIGN KEY(category_id) REFERENCES categories(id)
            );

            CREATE TABLE IF NOT EXISTS comments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sound_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                text TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(sound_id) REFERENCES sounds(id),
                FOREIGN KEY(user_id) REFERENCES users(id)
            );
            """,
        ),
        # Migration 2: indexes for the list filters
        (
            2,
            """
            CREATE INDEX IF NOT EXISTS idx_sounds_created_at ON sounds(created_at);
            CREATE INDEX IF NOT EXISTS idx_sounds_user ON sounds(user_id);
            CREATE INDEX IF NOT EXISTS idx_sounds_category ON sounds(category_id);
            CREATE INDEX IF NOT EXISTS idx_comments_sound ON comments(sound_id);
            CREATE INDEX IF NOT EXISTS idx_comments_user ON comments(user_id);
            """,
        ),
    ]

    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in migrations:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
