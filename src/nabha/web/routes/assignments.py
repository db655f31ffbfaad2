"""Assignment submission endpoints."""

from fastapi import APIRouter, status

from nabha.db.submissions_repository import insert_submission
from nabha.web.schemas import AssignmentSubmission, SubmissionResponse

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


@router.post(
    "/submit",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_assignment(submission: AssignmentSubmission) -> SubmissionResponse:
    """Store a student's answers for an assignment."""
    row = insert_submission(
        assignment_id=submission.assignment_id,
        student_id=submission.student_id,
        answers=submission.answers,
        submitted_at=submission.submitted_at,
    )
    return SubmissionResponse.model_validate(row)
