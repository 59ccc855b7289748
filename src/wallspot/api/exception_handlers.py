"""Custom exception handlers for FastAPI application.

Converts the domain exceptions raised by the ingestion core into JSON responses:

    ValidationError                       -> 400 (with the full "errors" list)
    InvalidImageError, UnsupportedFormat  -> 422
    EntityNotFoundException               -> 404
    UploadError                           -> 502
    ConfigurationError                    -> 503
    PersistenceError                      -> 500
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from wallspot.domain.exceptions import (
    ConfigurationError,
    EntityNotFoundException,
    InvalidImageError,
    PersistenceError,
    UnsupportedFormatError,
    UploadError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# Hey future me - register these BEFORE the app serves requests (create_app does). Without
# them a failed upload leaks out as a bare 500 with a stack trace.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for the ingestion domain exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Rejected upload - every violated constraint goes back to the client."""
        logger.info(
            "Upload rejected at %s: %s",
            request.url.path,
            "; ".join(exc.errors),
            extra={"path": request.url.path, "errors": exc.errors},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message, "errors": exc.errors},
        )

    @app.exception_handler(InvalidImageError)
    async def invalid_image_handler(request: Request, exc: InvalidImageError) -> JSONResponse:
        logger.warning(
            "Invalid image at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.message},
        )

    @app.exception_handler(UnsupportedFormatError)
    async def unsupported_format_handler(
        request: Request, exc: UnsupportedFormatError
    ) -> JSONResponse:
        logger.warning(
            "Unsupported format at %s: %s",
            request.url.path,
            exc.image_format,
            extra={"path": request.url.path, "format": exc.image_format},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.message},
        )

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        """Handle entity not found exceptions with 404 Not Found."""
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": str(exc.entity_id),
            },
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message},
        )

    @app.exception_handler(UploadError)
    async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
        """Storage provider failed - it's THEIR fault, so 502 Bad Gateway."""
        logger.error(
            "Storage %s failed at %s: %s",
            exc.operation,
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "provider": exc.provider, "operation": exc.operation},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message, "provider": exc.provider},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(
        request: Request, exc: PersistenceError
    ) -> JSONResponse:
        logger.error(
            "Persistence failed at %s: %s (%d assets cleaned up)",
            request.url.path,
            exc.message,
            exc.deleted_assets,
            extra={"path": request.url.path, "deleted_assets": exc.deleted_assets},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message, "deleted_assets": exc.deleted_assets},
        )
