"""FastAPI application factory.

Remote API that the offline sync client delivers to.

Run with:
    uvicorn --factory nabha.web.api:create_app --port 5000
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nabha.config.app_config import load_app_config
from nabha.db.database import init_db
from nabha.web.routes import (
    assignments_router,
    health_router,
    progress_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    logger.info("api_startup", db_path=str(app.state.db_path))
    yield


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Server database file. Defaults to config server.db_path

    Returns:
        Configured FastAPI app instance
    """
    if db_path is None:
        db_path = Path(load_app_config().server.db_path)

    init_db(db_path)

    app = FastAPI(
        title="Nabha Learning API",
        description="Progress and assignment endpoints for offline-first clients",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.db_path = db_path

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(progress_router)
    app.include_router(assignments_router)

    return app
