"""Allow/deny decisions returned by the permission engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Grant(str, Enum):
    """Why an action was allowed."""

    SUPERADMIN = "superadmin"
    GLOBAL_ADMIN = "global_admin"
    INSTITUTION_ADMIN = "institution_admin"
    AUTHOR = "author"
    OPERATOR = "operator"
    MEMBER = "member"
    PUBLIC = "public"
    OWNER = "owner"


class DenyReason(str, Enum):
    """Why an action was denied."""

    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_MEMBER = "not_member"
    PRIVATE_JOB = "private_job"
    UNAUTHENTICATED = "unauthenticated"
    NO_ACTIVE_TENANT = "no_active_tenant"
    TRANSFER_NOT_PERMITTED = "transfer_not_permitted"
    INSTITUTION_INACTIVE = "institution_inactive"
    NOT_OWNER = "not_owner"
    INVALID_STATE = "invalid_state"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    grant: Optional[Grant] = None
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls, grant: Grant) -> "Decision":
        return cls(allowed=True, grant=grant)

    @classmethod
    def deny(cls, reason: DenyReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed

    def __str__(self) -> str:
        if self.allowed:
            return f"Allow({self.grant.value})"
        return f"Deny({self.reason.value})"
