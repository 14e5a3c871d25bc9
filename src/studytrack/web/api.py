"""FastAPI application factory.

Main entry point for the study tracker Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studytrack import __version__
from studytrack.db.database import current_db_path, init_db
from studytrack.web.error_handlers import register_error_handlers
from studytrack.web.routes import (
    health_router,
    semesters_router,
    syllabus_router,
    tests_router,
    topics_router,
    trackers_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    init_db()
    logger.info("api_startup", db_path=str(current_db_path().absolute()))
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Study Tracker API",
        description="Syllabus progress and test countdowns",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(semesters_router)
    app.include_router(trackers_router)
    app.include_router(topics_router)
    app.include_router(tests_router)
    app.include_router(syllabus_router)

    return app


# Default app instance for uvicorn
app = create_app()
