"""
Global exception handlers and custom exception classes.
"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

# Set up logging
logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base exception class for application-specific exceptions.

    `retryable` tells the caller that re-running the same request may succeed
    (the UI shows a retry action for those).
    """
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, detail: str, status_code: int = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class StorageUnavailableError(AppException):
    """Raised when the persistence substrate cannot be read or written."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class ConcurrentModificationError(AppException):
    """Raised when a collection snapshot changed between read and write."""
    status_code = status.HTTP_409_CONFLICT
    retryable = True


class ResourceNotFoundError(AppException):
    """Raised when a single record is requested by an id that does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class PolicyViolationError(AppException):
    """Raised when a mutation would break an account policy (admin, self-deletion)."""
    status_code = status.HTTP_403_FORBIDDEN


class DuplicateUsernameError(AppException):
    """Raised when a username is already taken."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' already exists")


class NotAuthenticatedError(AppException):
    """Raised when no session user is present."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail)


class InvalidCredentialsError(AppException):
    """Raised when a username/password pair does not match."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Invalid username or password"):
        super().__init__(detail)


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code >= 500:
        logger.error(f"Application error on {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"Request rejected on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "retryable": exc.retryable},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with per-field details
    """
    logger.info(f"Validation error on {request.url.path}: {exc.errors()}")
    fields = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.setdefault(".".join(location) or "body", error.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "detail": "Validation error",
            "fields": fields,
            "errors": exc.errors(),
        }),
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
