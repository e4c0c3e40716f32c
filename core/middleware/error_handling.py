"""
Error handling with sanitized messages and a single response envelope.

Every error response has the shape::

    {"error": {"code", "message", "path", "method", ["reason"], ["details"]}}
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import JobBoardError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged or returned
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'bearer\s+[A-Za-z0-9\-_.]+', re.IGNORECASE),
]


def sanitize_error_message(message: Any) -> str:
    """Remove credentials and tokens from an error message."""
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub("[REDACTED]", sanitized)
    return sanitized


def error_envelope(
    code: str,
    message: str,
    path: str,
    method: str,
    reason: Optional[str] = None,
    details: Any = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "path": path,
        "method": method,
    }
    if reason is not None:
        error["reason"] = reason
    if details is not None:
        error["details"] = details
    return {"error": error}


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def domain_error_response(exc: JobBoardError, path: str, method: str) -> JSONResponse:
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        level,
        f"{exc.code}: {method} {path} - {sanitize_error_message(exc.message)}"
        + (f" reason={exc.reason.value}" if exc.reason else ""),
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(
            exc.code,
            sanitize_error_message(exc.message),
            path,
            method,
            reason=exc.reason.value if exc.reason else None,
            details=exc.details,
        ),
        headers=headers,
    )


class ErrorHandlingMiddleware:
    """
    Outermost ASGI safety net.

    Exception handlers registered by ``setup_error_handlers`` deal with
    almost everything; this catches what escapes them (errors raised in
    other middleware) and answers with the same envelope.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        path = scope.get("path", "unknown")
        method = scope.get("method", "unknown")

        if isinstance(exc, JobBoardError):
            return domain_error_response(exc, path, method)

        details = None
        if isinstance(exc, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
            code = "CONFLICT"
            message = "Resource already exists"
            logger.warning(f"Integrity error: {method} {path}")
        elif isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            code = "DATABASE_ERROR"
            message = "Database service temporarily unavailable"
            logger.error(f"Database operational error: {method} {path}", exc_info=True)
        elif isinstance(exc, SQLAlchemyError):
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            code = "DATABASE_ERROR"
            message = "A database error occurred"
            logger.error(f"SQLAlchemy error: {method} {path}", exc_info=True)
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            code = "INTERNAL_SERVER_ERROR"
            message = "An unexpected error occurred"
            logger.error(
                f"Unhandled exception: {method} {path} - "
                f"{type(exc).__name__}: {sanitize_error_message(exc)}",
                exc_info=True,
            )

        if self.debug and status_code >= 500:
            details = {
                "type": type(exc).__name__,
                "message": sanitize_error_message(exc),
                "traceback": traceback.format_exc(),
            }

        return JSONResponse(
            status_code=status_code,
            content=error_envelope(code, message, path, method, details=details),
        )


def setup_error_handlers(app):
    """
    Register exception handlers on a FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(JobBoardError)
    async def domain_exception_handler(request: Request, exc: JobBoardError):
        return domain_error_response(exc, str(request.url.path), request.method)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                "HTTP_EXCEPTION",
                sanitize_error_message(exc.detail),
                str(request.url.path),
                request.method,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_envelope(
                "VALIDATION_ERROR",
                "Request validation failed",
                str(request.url.path),
                request.method,
                details=format_validation_errors(exc),
            ),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error: {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_envelope(
                "CONFLICT",
                "Resource already exists",
                str(request.url.path),
                request.method,
            ),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(exc)}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(
                "INTERNAL_SERVER_ERROR",
                "An unexpected error occurred",
                str(request.url.path),
                request.method,
            ),
        )
