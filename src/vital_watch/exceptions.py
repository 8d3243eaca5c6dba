"""
Global exception handlers and custom exception classes.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Dict, Optional
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    Base exception class for application-specific exceptions.

    `detail` is what the client sees. `internal_detail` is only ever logged.
    """
    log_level = logging.ERROR

    def __init__(
        self,
        status_code: int,
        detail: str,
        internal_detail: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(internal_detail or detail)
        self.status_code = status_code
        self.detail = detail
        self.internal_detail = internal_detail
        self.headers = headers


class ResourceNotFoundError(AppException):
    """Raised when a non-document resource lookup finds nothing."""
    log_level = logging.INFO

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ValidationError(AppException):
    """Raised when input is well-formed JSON/form data but semantically invalid."""
    log_level = logging.WARNING

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, detail)


class StorageError(AppException):
    """Raised when a blob store put, get or delete fails."""

    def __init__(self, internal_detail: str, detail: str = "Storage service failure"):
        super().__init__(status.HTTP_502_BAD_GATEWAY, detail, internal_detail=internal_detail)


class ConsistencyError(AppException):
    """
    Raised when the metadata insert fails after the blob was stored.

    Always paired with a compensating delete of the stored blob.
    """

    def __init__(self, storage_key: str, internal_detail: str):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to create prescription record",
            internal_detail=internal_detail
        )
        self.storage_key = storage_key


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    request_id = getattr(request.state, "request_id", "-")
    logger.log(
        exc.log_level,
        f"Application error [{request_id}] {type(exc).__name__} on {request.method} {request.url.path}: "
        f"{exc.internal_detail or exc.detail}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": jsonable_errors(exc)
        }
    )


def jsonable_errors(exc: RequestValidationError):
    """Strip non-serializable context (e.g. exception objects) from pydantic errors."""
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
