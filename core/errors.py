"""
Domain error taxonomy.

Every error raised by services and the authorization layer derives from
``JobBoardError``; the FastAPI handlers in ``core.middleware.error_handling``
turn them into the standard error envelope.
"""

from typing import Any, Optional

from core.authorization.decisions import Decision, DenyReason
from core.config import settings


class JobBoardError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        reason: Optional[DenyReason] = None,
        details: Any = None,
    ):
        self.message = message or self.default_message
        self.reason = reason
        self.details = details
        super().__init__(self.message)


class Unauthenticated(JobBoardError):
    """No caller identity where one is required."""

    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class Forbidden(JobBoardError):
    """Authenticated, but the permission engine said no."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "You don't have permission to perform this action"


class NotFound(JobBoardError):
    """Entity missing, tombstoned, or hidden from the caller."""

    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"

    def __init__(self, message: Optional[str] = None, *, resource: Optional[str] = None,
                 resource_id: Any = None, **kwargs):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message, **kwargs)


class Conflict(JobBoardError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class ValidationError(JobBoardError):
    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class NoActiveTenant(JobBoardError):
    """Tenant-scoped operation attempted without an active institution."""

    status_code = 400
    code = "NO_ACTIVE_TENANT"
    default_message = "Select an active institution first"

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("reason", DenyReason.NO_ACTIVE_TENANT)
        super().__init__(message, **kwargs)


def raise_for_decision(
    decision: Decision,
    *,
    message: Optional[str] = None,
    private_job_denial: Optional[str] = None,
) -> None:
    """
    Raise the exception matching a denied decision; no-op when allowed.

    ``private_job_denial`` ("not_found" or "forbidden") controls how a
    caller without visibility on a private job is answered. It defaults to
    the ``PRIVATE_JOB_DENIAL`` setting.
    """
    if decision.allowed:
        return

    reason = decision.reason

    if reason is DenyReason.NO_ACTIVE_TENANT:
        raise NoActiveTenant(message)

    if reason in (DenyReason.PRIVATE_JOB, DenyReason.UNAUTHENTICATED):
        if private_job_denial is None:
            private_job_denial = settings.private_job_denial
        if private_job_denial == "not_found":
            raise NotFound("Job not found", resource="job", reason=reason)
        if reason is DenyReason.UNAUTHENTICATED:
            raise Unauthenticated(message, reason=reason)

    raise Forbidden(message, reason=reason)
