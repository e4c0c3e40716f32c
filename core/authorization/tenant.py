"""Active institution resolution and tenant switching."""

import logging
from typing import Optional, Protocol

from core.authorization.decisions import Decision, DenyReason, Grant
from core.authorization.roles import Caller
from core.errors import Forbidden, NoActiveTenant, NotFound, ValidationError

logger = logging.getLogger(__name__)


class InstitutionLike(Protocol):
    id: int
    is_active: bool


def resolve_active_institution(
    caller: Caller,
    institution: Optional[InstitutionLike],
) -> Optional[int]:
    """
    Return the tenant id the caller is acting in.

    ``institution`` is the loaded row for ``caller.active_institution_id``
    (None when unset or gone). Superadmins may act unlinked; anyone else
    needs a live, active institution.
    """
    if caller.is_superadmin:
        return institution.id if institution is not None else None

    if institution is None or caller.active_institution_id is None:
        raise NoActiveTenant()

    if not institution.is_active:
        logger.warning(
            f"Rejected caller in suspended institution: user={caller.user_id} "
            f"institution={institution.id}"
        )
        raise Forbidden(
            "Your institution is suspended",
            reason=DenyReason.INSTITUTION_INACTIVE,
        )

    return institution.id


def check_tenant_switch(
    caller: Caller,
    target_institution_id: Optional[int],
    institution: Optional[InstitutionLike],
) -> Decision:
    """
    Validate a switch of the caller's active institution.

    ``institution`` is the loaded target row. Clearing to None is a
    superadmin privilege; a missing target raises NotFound. Membership
    and activity failures come back as a denied decision.
    """
    if target_institution_id is None:
        if caller.is_superadmin:
            return Decision.allow(Grant.SUPERADMIN)
        raise ValidationError("An institution must be selected")

    if institution is None:
        raise NotFound(
            "Institution not found",
            resource="institution",
            resource_id=target_institution_id,
        )

    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)

    if not caller.is_member_of(target_institution_id):
        logger.warning(
            f"Denied tenant switch: user={caller.user_id} "
            f"institution={target_institution_id} reason={DenyReason.NOT_MEMBER.value}"
        )
        return Decision.deny(DenyReason.NOT_MEMBER)

    if not institution.is_active:
        return Decision.deny(DenyReason.INSTITUTION_INACTIVE)

    return Decision.allow(Grant.MEMBER)
