"""
Centralized error handling and user-friendly error messages.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    code = "internal"

    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppError):
    """Resource not found error."""
    code = "not_found"

    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class UnauthorizedError(AppError):
    """Unauthorized access error."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized access", details: dict | None = None, code: str | None = None):
        super().__init__(message, status_code=401, details=details)
        if code:
            self.code = code


class ForbiddenError(AppError):
    """Forbidden access error."""
    code = "forbidden"

    def __init__(self, message: str = "Access forbidden", details: dict | None = None, code: str | None = None):
        super().__init__(message, status_code=403, details=details)
        if code:
            self.code = code


class QuotaNotConfiguredError(AppError):
    """The company has no quota ledger row; provisioning must fix it."""
    code = "quota_not_configured"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("quota_not_configured"), status_code=409, details=details)


class QuotaExceededError(AppError):
    """The company has used its whole unlock quota for the period."""
    code = "quota_exceeded"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("quota_exceeded"), status_code=402, details=details)


class DeadlineExceededError(AppError):
    """The caller's deadline passed before the operation could commit."""
    code = "deadline_exceeded"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("deadline_exceeded"), status_code=504, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "unauthorized": "Please login to access this feature.",
    "invalid_token": "Your session has expired. Please login again.",
    "pending_approval": "Your account is waiting for approval.",
    "blocked": "Your account has been blocked.",
    "invalid_auth_data": "Telegram login could not be verified. Please try again.",

    # Candidates
    "candidate_not_found": "Candidate not found or no longer available.",
    "contact_not_found": "This candidate has no contact details on file.",

    # Quota
    "quota_not_configured": "Your company has no unlock quota configured. Please contact support.",
    "quota_exceeded": "Your company has used all of its contact unlocks for this period.",

    # General
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "deadline_exceeded": "The request took too long. Please try again.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def create_error_response(
    status_code: int,
    message: str,
    code: str | None = None,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if code:
        content["code"] = code

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def app_error_response(exc: AppError) -> JSONResponse:
    """Render an AppError with the shared error envelope."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    return create_error_response(exc.status_code, exc.message, code=exc.code, details=exc.details or None)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error envelope for application, HTTP and database errors."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return app_error_response(exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTPException with user-friendly messages."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.detail,
                "status_code": exc.status_code,
            },
        )

    @app.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        """Handle database operational errors (connection loss, lock timeouts)."""
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"), code="database_error")

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle general database errors."""
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"), code="database_error")


def handle_database_error(error: Exception, operation: str = "") -> HTTPException:
    """Handle database errors with user-friendly messages."""
    logger.error(f"Database error during {operation}: {error}")

    error_str = str(error).lower()

    if "connection" in error_str or "operational" in error_str:
        return HTTPException(
            status_code=503,
            detail=get_error_message("database_error")
        )

    return HTTPException(
        status_code=500,
        detail=get_error_message("server_error")
    )
