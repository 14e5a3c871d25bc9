"""SQLite database connection and schema management.

Provides connection management and schema initialization for the study
tracker.
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from studytrack.config.app_config import get_db_path

logger = structlog.get_logger(__name__)

# Current database (module-level for simplicity in CLI context)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured db_path.
    """
    global _db_path
    _db_path = db_path or get_db_path()

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def current_db_path() -> Path:
    """Path used by get_db()."""
    return _db_path or get_db_path()


def reset_db_path() -> None:
    """Forget the path set by init_db (falls back to configuration)."""
    global _db_path
    _db_path = None


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success, rolls back on error.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM semesters").fetchall()
    """
    db_path = current_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def now_ms() -> int:
    """Current time as epoch milliseconds (row timestamps)."""
    return int(time.time() * 1000)


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency. test_coverage has no foreign key on
    unit_id/topic_id: deleting a unit or topic leaves its coverage rows in
    place.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS semesters (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS trackers (
            id TEXT PRIMARY KEY,
            semester_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            color TEXT,
            total_subjects INTEGER NOT NULL DEFAULT 0,
            total_units INTEGER NOT NULL DEFAULT 0,
            total_topics INTEGER NOT NULL DEFAULT 0,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (semester_id) REFERENCES semesters(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS subjects (
            id TEXT PRIMARY KEY,
            tracker_id TEXT NOT NULL,
            name TEXT NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (tracker_id) REFERENCES trackers(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS units (
            id TEXT PRIMARY KEY,
            subject_id TEXT NOT NULL,
            name TEXT NOT NULL,
            "order" INTEGER NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (subject_id) REFERENCES subjects(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS topics (
            id TEXT PRIMARY KEY,
            unit_id TEXT NOT NULL,
            name TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            "order" INTEGER NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (unit_id) REFERENCES units(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS tests (
            id TEXT PRIMARY KEY,
            tracker_id TEXT NOT NULL,
            name TEXT NOT NULL,
            test_type TEXT NOT NULL,
            scheduled_date INTEGER NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (tracker_id) REFERENCES trackers(id) ON DELETE CASCADE
        );

        -- Exactly one of unit_id / topic_id is set
        CREATE TABLE IF NOT EXISTS test_coverage (
            id TEXT PRIMARY KEY,
            test_id TEXT NOT NULL,
            unit_id TEXT,
            topic_id TEXT,
            CHECK ((unit_id IS NULL) <> (topic_id IS NULL)),
            FOREIGN KEY (test_id) REFERENCES tests(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_trackers_semester ON trackers(semester_id);
        CREATE INDEX IF NOT EXISTS idx_subjects_tracker ON subjects(tracker_id);
        CREATE INDEX IF NOT EXISTS idx_units_subject ON units(subject_id);
        CREATE INDEX IF NOT EXISTS idx_topics_unit ON topics(unit_id);
        CREATE INDEX IF NOT EXISTS idx_tests_tracker ON tests(tracker_id);
        CREATE INDEX IF NOT EXISTS idx_test_coverage_test ON test_coverage(test_id);
        """
    )
