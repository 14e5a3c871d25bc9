"""Exception handlers mapping domain errors to HTTP responses.

NotFoundError -> 404, ValidationError -> 422. Responses use FastAPI's
{"detail": ...} shape.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from studytrack.core.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register domain error handlers on the FastAPI app."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info("api_not_found", path=request.url.path, kind=exc.kind, entity_id=exc.entity_id)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("api_validation_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )
