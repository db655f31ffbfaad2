"""Health check endpoint.

Reports whether the server database answers and how many progress rows
and submissions it holds. An unreachable database answers 503.
"""

import sqlite3

import structlog
from fastapi import APIRouter, Response, status

from nabha import __version__
from nabha.db.database import get_table_counts
from nabha.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(response: Response) -> HealthResponse:
    """Check the server database and report row counts."""
    try:
        counts = get_table_counts()
    except sqlite3.Error as e:
        logger.warning("health.database_unavailable", error=str(e))
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="degraded", version=__version__, database="unavailable")

    return HealthResponse(
        version=__version__,
        progress_records=counts["student_progress"],
        submissions=counts["assignment_submissions"],
    )
