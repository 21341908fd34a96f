"""SQLite database connection + schema initialization.

Lightweight on purpose:
- SQLite file stored locally (persists between restarts)
- schema created on first run
- foreign keys enabled

The schedule builder and the Streamlit UI both import this module.

"""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_DB_FILENAME = "schedule.db"
DB_ENV_VAR = "CLASS_SCHEDULE_DB"


@dataclass(frozen=True)
class DBConfig:
    """Database configuration for the app."""

    db_path: Path


def default_db_path() -> Path:
    """Resolve DB path.

    Uses `CLASS_SCHEDULE_DB` env var if set, else stores under `ui/database/`.
    """

    override = os.getenv(DB_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()

    return (Path(__file__).resolve().parent / DEFAULT_DB_FILENAME).resolve()


def get_connection(config: Optional[DBConfig] = None) -> sqlite3.Connection:
    """Create a SQLite connection with sane defaults."""

    db_path = (config.db_path if config else default_db_path())
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create all required tables if they do not exist."""

    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS classes (
            id INTEGER PRIMARY KEY,
            name TEXT,
            grade TEXT,
            section TEXT
        );

        CREATE TABLE IF NOT EXISTS teachers (
            id INTEGER PRIMARY KEY,
            full_name TEXT NOT NULL
        );

        -- Optional: a teacher without a profile row is treated as always available.
        CREATE TABLE IF NOT EXISTS teacher_profiles (
            user_id INTEGER PRIMARY KEY,
            availability_json TEXT NOT NULL DEFAULT '{}',
            FOREIGN KEY (user_id) REFERENCES teachers(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS subjects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            class_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            hours INTEGER,
            teacher_id INTEGER,
            teacher_name TEXT,
            FOREIGN KEY (class_id) REFERENCES classes(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_subjects_class ON subjects(class_id);

        -- One weekly schedule per class, stored as an opaque JSON blob.
        CREATE TABLE IF NOT EXISTS class_schedules (
            class_id TEXT PRIMARY KEY,
            schedule_json TEXT NOT NULL DEFAULT '{}',
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT
        );
        """
    )

    conn.commit()


class db_session:
    """Context manager that opens a connection and ensures schema exists."""

    def __init__(self, config: Optional[DBConfig] = None):
        self._config = config
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> sqlite3.Connection:
        self._conn = get_connection(self._config)
        init_db(self._conn)
        return self._conn

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._conn is not None
        if exc_type is None:
            self._conn.commit()
        else:
            self._conn.rollback()
        self._conn.close()
        self._conn = None
