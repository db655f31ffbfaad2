"""Repository functions for the assignment_submissions table."""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass
from typing import Any

import structlog

from nabha.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class SubmissionRow:
    """Stored assignment submission."""

    id: str
    assignment_id: str
    student_id: str
    answers: Any
    status: str
    submitted_at: str


def insert_submission(
    assignment_id: str,
    student_id: str,
    answers: Any,
    submitted_at: str | None = None,
) -> SubmissionRow:
    """Insert a new submission.

    Args:
        assignment_id: Assignment being answered
        student_id: Submitting student
        answers: JSON-serializable answers
        submitted_at: Client-side submission time, if known

    Returns:
        The stored SubmissionRow
    """
    submission_id = str(uuid.uuid4())

    with get_db() as conn:
        if submitted_at:
            conn.execute(
                """
                INSERT INTO assignment_submissions
                    (id, assignment_id, student_id, answers, submitted_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (submission_id, assignment_id, student_id, json.dumps(answers), submitted_at),
            )
        else:
            conn.execute(
                """
                INSERT INTO assignment_submissions
                    (id, assignment_id, student_id, answers)
                VALUES (?, ?, ?, ?)
                """,
                (submission_id, assignment_id, student_id, json.dumps(answers)),
            )
        row = conn.execute(
            "SELECT * FROM assignment_submissions WHERE id = ?", (submission_id,)
        ).fetchone()

    logger.debug(
        "submissions.inserted",
        submission_id=submission_id,
        assignment_id=assignment_id,
        student_id=student_id,
    )
    return _row_to_record(row)


def get_submissions_for_assignment(assignment_id: str) -> list[SubmissionRow]:
    """Get all submissions for an assignment, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM assignment_submissions
            WHERE assignment_id = ? ORDER BY submitted_at, rowid
            """,
            (assignment_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def _row_to_record(row: sqlite3.Row) -> SubmissionRow:
    """Convert database row to SubmissionRow."""
    return SubmissionRow(
        id=row["id"],
        assignment_id=row["assignment_id"],
        student_id=row["student_id"],
        answers=json.loads(row["answers"]),
        status=row["status"],
        submitted_at=row["submitted_at"],
    )
