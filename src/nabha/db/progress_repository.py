"""Repository functions for the student_progress table."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass

import structlog

from nabha.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class ProgressRow:
    """Stored progress for one student and content item."""

    id: str
    student_id: str
    content_item_id: str
    progress_percentage: int
    score: int | None
    time_spent: int
    completed_at: str | None
    last_accessed_at: str
    updated_at: str


def upsert_progress(
    student_id: str,
    content_item_id: str,
    progress_percentage: int = 0,
    score: int | None = None,
    time_spent: int = 0,
    completed_at: str | None = None,
) -> ProgressRow:
    """Insert or update progress for a (student, content item) pair.

    Replaying the same update leaves a single row with the same values.

    Returns:
        The stored ProgressRow
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO student_progress (
                id, student_id, content_item_id, progress_percentage,
                score, time_spent, completed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(student_id, content_item_id) DO UPDATE SET
                progress_percentage = excluded.progress_percentage,
                score = excluded.score,
                time_spent = excluded.time_spent,
                completed_at = excluded.completed_at,
                last_accessed_at = datetime('now'),
                updated_at = datetime('now')
            """,
            (
                str(uuid.uuid4()),
                student_id,
                content_item_id,
                progress_percentage,
                score,
                time_spent,
                completed_at,
            ),
        )
        row = conn.execute(
            """
            SELECT * FROM student_progress
            WHERE student_id = ? AND content_item_id = ?
            """,
            (student_id, content_item_id),
        ).fetchone()

    logger.debug(
        "progress.upserted",
        student_id=student_id,
        content_item_id=content_item_id,
        progress_percentage=progress_percentage,
    )
    return _row_to_record(row)


def get_student_progress(student_id: str) -> list[ProgressRow]:
    """Get all progress rows for a student.

    Returns:
        List of ProgressRow, ordered by content item
    """
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM student_progress
            WHERE student_id = ? ORDER BY content_item_id
            """,
            (student_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def _row_to_record(row: sqlite3.Row) -> ProgressRow:
    """Convert database row to ProgressRow."""
    return ProgressRow(
        id=row["id"],
        student_id=row["student_id"],
        content_item_id=row["content_item_id"],
        progress_percentage=row["progress_percentage"],
        score=row["score"],
        time_spent=row["time_spent"],
        completed_at=row["completed_at"],
        last_accessed_at=row["last_accessed_at"],
        updated_at=row["updated_at"],
    )
