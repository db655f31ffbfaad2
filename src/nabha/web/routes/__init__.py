"""Route handlers for the remote API."""

from nabha.web.routes.assignments import router as assignments_router
from nabha.web.routes.health import router as health_router
from nabha.web.routes.progress import router as progress_router

__all__ = [
    "assignments_router",
    "health_router",
    "progress_router",
]
