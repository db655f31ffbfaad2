"""Pydantic schemas for the remote API.

Request bodies are the same payload models the offline client queues
(ProgressRecord, AssignmentSubmission). Responses use camelCase keys.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nabha.offline.models import AssignmentSubmission, ProgressRecord

__all__ = [
    "AssignmentSubmission",
    "HealthResponse",
    "ProgressListResponse",
    "ProgressRecord",
    "ProgressResponse",
    "SubmissionResponse",
]


class _CamelResponse(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class ProgressResponse(_CamelResponse):
    """Stored progress row."""

    id: str
    student_id: str
    content_item_id: str
    progress_percentage: int
    score: int | None = None
    time_spent: int = 0
    completed_at: str | None = None
    last_accessed_at: str
    updated_at: str


class ProgressListResponse(_CamelResponse):
    """Response for a student's progress."""

    progress: list[ProgressResponse]
    count: int


# =============================================================================
# SUBMISSION SCHEMAS
# =============================================================================


class SubmissionResponse(_CamelResponse):
    """Stored assignment submission."""

    id: str
    assignment_id: str
    student_id: str
    answers: Any
    status: str = "submitted"
    submitted_at: str


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(_CamelResponse):
    """Health check response.

    status is "ok" when the server database answers, "degraded" otherwise.
    """

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "ok"
    progress_records: int | None = None
    submissions: int | None = None
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
