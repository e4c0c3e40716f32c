"""
Core middleware package.

This package provides the middleware components:
- Error handling with sensitive data sanitization
- Structured logging with PII masking
- Authentication that resolves caller identity from bearer tokens
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
    mask_sensitive_data,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    Identity,
    get_identity,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "get_logger",
    "mask_sensitive_data",
    # Authentication
    "AuthenticationMiddleware",
    "Identity",
    "get_identity",
]
