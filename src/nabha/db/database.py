"""SQLite database connection and schema management for the remote API.

Provides connection management and schema initialization for the
server-side progress and assignment-submission tables.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/state/server.db")

# Current database (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to data/state/server.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM student_progress").fetchall()
    """
    db_path = _db_path or DEFAULT_DB_PATH

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


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- One row per (student, content item); POST /progress upserts
        CREATE TABLE IF NOT EXISTS student_progress (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            content_item_id TEXT NOT NULL,
            progress_percentage INTEGER NOT NULL DEFAULT 0,
            score INTEGER,
            time_spent INTEGER NOT NULL DEFAULT 0,
            completed_at TEXT,
            last_accessed_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(student_id, content_item_id)
        );

        CREATE TABLE IF NOT EXISTS assignment_submissions (
            id TEXT PRIMARY KEY,
            assignment_id TEXT NOT NULL,
            student_id TEXT NOT NULL,
            answers TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'submitted' CHECK(status IN ('submitted', 'graded')),
            submitted_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE INDEX IF NOT EXISTS idx_progress_student ON student_progress(student_id);
        CREATE INDEX IF NOT EXISTS idx_submissions_assignment ON assignment_submissions(assignment_id);
        """
    )


def get_table_counts() -> dict[str, int]:
    """Row counts of the server tables.

    Raises:
        sqlite3.Error: If the database can't be read
    """
    with get_db() as conn:
        progress = conn.execute("SELECT COUNT(*) FROM student_progress").fetchone()[0]
        submissions = conn.execute(
            "SELECT COUNT(*) FROM assignment_submissions"
        ).fetchone()[0]
    return {"student_progress": progress, "assignment_submissions": submissions}
