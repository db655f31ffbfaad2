"""Progress endpoints."""

from fastapi import APIRouter

from nabha.db.progress_repository import get_student_progress, upsert_progress
from nabha.web.schemas import ProgressListResponse, ProgressRecord, ProgressResponse

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.post("", response_model=ProgressResponse)
async def save_progress(record: ProgressRecord) -> ProgressResponse:
    """Upsert progress for a student and content item.

    The client-side `id` is a cache key and is ignored here; the server
    keys progress by (studentId, contentItemId).
    """
    row = upsert_progress(
        student_id=record.student_id,
        content_item_id=record.content_item_id,
        progress_percentage=record.progress_percentage,
        score=record.score,
        time_spent=record.time_spent,
        completed_at=record.completed_at,
    )
    return ProgressResponse.model_validate(row)


@router.get("/student/{student_id}", response_model=ProgressListResponse)
async def list_student_progress(student_id: str) -> ProgressListResponse:
    """List stored progress for a student."""
    rows = get_student_progress(student_id)
    progress = [ProgressResponse.model_validate(row) for row in rows]
    return ProgressListResponse(progress=progress, count=len(progress))
