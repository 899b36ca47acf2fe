"""
Error handling middleware with sanitized, structured error responses, plus
translation of persistence errors into user-facing messages.

Every error leaves the API as:
    {"error": {"code": ..., "message": ..., "path": ..., "method": ...}}
"""

import logging
import re
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Optional

import jwt
from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never reach a client or a log line
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message (non-strings are stringified)

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the stack trace (development only)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


# ==================== Persistence error translation ==================== #

@dataclass(frozen=True)
class PersistenceErrorInfo:
    """User-facing description of a failed store operation."""

    code: str
    message: str
    needs_session_refresh: bool = False


# Postgres SQLSTATE codes we know how to explain
_SQLSTATE_MESSAGES: dict[str, tuple[str, str]] = {
    "23505": ("UNIQUE_VIOLATION", "This record already exists."),
    "23503": ("FOREIGN_KEY_VIOLATION", "A related record is missing."),
    "23502": ("NOT_NULL_VIOLATION", "A required field is missing."),
    "42501": ("PERMISSION_DENIED", "You don't have permission to modify this record."),
}

_GENERIC_PERSISTENCE_ERROR = PersistenceErrorInfo(
    code="DATABASE_ERROR",
    message="Something went wrong while saving. Please try again.",
)


def _sqlstate(exc: BaseException) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    for source in (orig, getattr(orig, "__cause__", None)):
        if source is None:
            continue
        code = getattr(source, "sqlstate", None) or getattr(source, "pgcode", None)
        if code:
            return str(code)
    return None


def describe_persistence_error(exc: BaseException) -> PersistenceErrorInfo:
    """
    Map a store or session error onto a small set of user-facing messages.

    Known SQLSTATE codes are recognised first; SQLite (tests) reports no
    codes, so the driver message is inspected as a fallback. An expired JWT
    is flagged as needing a session refresh.

    Args:
        exc: The exception raised by the persistence call

    Returns:
        PersistenceErrorInfo with a stable code and message
    """
    if isinstance(exc, jwt.ExpiredSignatureError):
        return PersistenceErrorInfo(
            code="TOKEN_EXPIRED",
            message="Your session has expired. Please sign in again.",
            needs_session_refresh=True,
        )

    if isinstance(exc, (NoResultFound, LookupError)):
        return PersistenceErrorInfo(code="NOT_FOUND", message="The record could not be found.")

    if isinstance(exc, PermissionError):
        code, message = _SQLSTATE_MESSAGES["42501"]
        return PersistenceErrorInfo(code=code, message=message)

    if isinstance(exc, DBAPIError):
        sqlstate = _sqlstate(exc)
        if sqlstate in _SQLSTATE_MESSAGES:
            code, message = _SQLSTATE_MESSAGES[sqlstate]
            return PersistenceErrorInfo(code=code, message=message)

        text = str(getattr(exc, "orig", exc)).lower()
        if "unique constraint" in text or "duplicate key" in text:
            code, message = _SQLSTATE_MESSAGES["23505"]
        elif "foreign key constraint" in text:
            code, message = _SQLSTATE_MESSAGES["23503"]
        elif "not null constraint" in text:
            code, message = _SQLSTATE_MESSAGES["23502"]
        elif "row-level security" in text or "permission denied" in text:
            code, message = _SQLSTATE_MESSAGES["42501"]
        elif "jwt expired" in text:
            return PersistenceErrorInfo(
                code="TOKEN_EXPIRED",
                message="Your session has expired. Please sign in again.",
                needs_session_refresh=True,
            )
        else:
            return _GENERIC_PERSISTENCE_ERROR
        return PersistenceErrorInfo(code=code, message=message)

    return _GENERIC_PERSISTENCE_ERROR


# ==================== Exception classification ==================== #

def classify_exception(
    exc: Exception, debug: bool = False
) -> tuple[int, str, str, Optional[Any]]:
    """
    Decide the status code, error code, message and optional details for an exception.

    Args:
        exc: The exception to classify
        debug: Whether to attach internal details

    Returns:
        Tuple of (status_code, error_code, message, details)
    """
    if isinstance(exc, StarletteHTTPException):
        # Routes may raise detail={"code": ..., "message": ...} for a specific code
        if isinstance(exc.detail, dict) and "code" in exc.detail:
            return (
                exc.status_code,
                str(exc.detail["code"]),
                sanitize_error_message(exc.detail.get("message", "")),
                None,
            )
        return exc.status_code, "HTTP_EXCEPTION", sanitize_error_message(exc.detail), None

    if isinstance(exc, RequestValidationError):
        return (
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            format_validation_errors(exc),
        )

    if isinstance(exc, IntegrityError):
        info = describe_persistence_error(exc)
        details = get_safe_error_details(exc, include_details=True) if debug else None
        return status.HTTP_409_CONFLICT, info.code, info.message, details

    if isinstance(exc, OperationalError):
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "DATABASE_ERROR",
            "Database service temporarily unavailable",
            None,
        )

    if isinstance(exc, SQLAlchemyError):
        details = get_safe_error_details(exc, include_details=True) if debug else None
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "A database error occurred", details

    if isinstance(exc, RedisConnectionError):
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "CACHE_ERROR",
            "Cache service temporarily unavailable",
            None,
        )

    if isinstance(exc, RedisError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "CACHE_ERROR", "A cache error occurred", None

    if isinstance(exc, ValueError):
        message = sanitize_error_message(str(exc)) or "Invalid input provided"
        return status.HTTP_400_BAD_REQUEST, "INVALID_INPUT", message, None

    if isinstance(exc, PermissionError):
        return (
            status.HTTP_403_FORBIDDEN,
            "PERMISSION_DENIED",
            "You don't have permission to perform this action",
            None,
        )

    if isinstance(exc, TimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT, "TIMEOUT", "The request timed out", None

    details = get_safe_error_details(exc, include_details=True) if debug else None
    return (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        details,
    )


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors into a client-friendly structure.

    Input values are echoed back only when they are simple and not sensitive.
    """
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        input_value = error.get("input")
        if isinstance(input_value, (str, int, float, bool)):
            if not any(pattern.search(str(input_value)) for pattern in SENSITIVE_PATTERNS):
                error_dict["input"] = input_value
        errors.append(error_dict)
    return errors


def build_error_body(
    code: str,
    message: str,
    path: str,
    method: str,
    details: Optional[Any] = None,
    request_id: Optional[str] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    if request_id:
        body["error"]["request_id"] = request_id
    return body


def _log_exception(exc: Exception, status_code: int, method: str, path: str) -> None:
    if status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {method} {path} - {sanitize_error_message(str(exc))}",
            exc_info=True,
        )
    else:
        logger.warning(
            f"{type(exc).__name__}: {method} {path} - Status: {status_code}"
        )


class ErrorHandlingMiddleware:
    """
    ASGI middleware turning any escaped exception into a sanitized JSON error.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = await self._handle_exception(exc, scope)
            await response(scope, receive, send)

    async def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        path = scope.get("path", "unknown")
        method = scope.get("method", "unknown")

        status_code, code, message, details = classify_exception(exc, self.debug)
        _log_exception(exc, status_code, method, path)

        request_id = None
        if "headers" in scope:
            raw = dict(scope["headers"]).get(b"x-request-id")
            if raw:
                request_id = raw.decode()

        return JSONResponse(
            status_code=status_code,
            content=build_error_body(code, message, path, method, details, request_id),
        )


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether to include detailed error information
    """

    async def _respond(request: Request, exc: Exception) -> JSONResponse:
        status_code, code, message, details = classify_exception(exc, debug)
        _log_exception(exc, status_code, request.method, request.url.path)
        return JSONResponse(
            status_code=status_code,
            content=build_error_body(
                code,
                message,
                str(request.url.path),
                request.method,
                details,
                request.headers.get("x-request-id"),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return await _respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        return await _respond(request, exc)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        return await _respond(request, exc)
