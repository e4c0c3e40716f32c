"""Role assignment and removal."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.permissions import can_assign_role
from core.authorization.roles import Caller, Role
from core.errors import NotFound, raise_for_decision
from database.models.institutions import Membership
from database.repositories import InstitutionRepository, MembershipRepository, UserRepository

logger = logging.getLogger(__name__)


async def assign_role(
    db: AsyncSession,
    caller: Caller,
    user_id: int,
    institution_id: int,
    role: Role,
) -> Membership:
    """
    Give ``user_id`` the ``role`` in ``institution_id``.

    Replaces an existing role atomically. Overwriting a row also needs the
    right to revoke the role it currently holds.
    """
    user = await UserRepository(db).get(user_id)
    if user is None:
        raise NotFound("User not found", resource="user", resource_id=user_id)
    if await InstitutionRepository(db).get(institution_id) is None:
        raise NotFound("Institution not found", resource="institution", resource_id=institution_id)

    raise_for_decision(can_assign_role(caller, institution_id, role))

    repo = MembershipRepository(db)
    current = await repo.get_for(user_id, institution_id)
    if current is not None:
        raise_for_decision(can_assign_role(caller, institution_id, Role(current.role)))

    membership = await repo.upsert(user_id, institution_id, role)
    if user.active_institution_id is None:
        await UserRepository(db).set_active_institution(user, institution_id)
    await db.commit()
    logger.info(
        f"Role assigned: user={user_id} institution={institution_id} role={role.value} "
        f"by={caller.user_id}"
    )
    return membership


async def remove_membership(db: AsyncSession, caller: Caller, membership_id: int) -> None:
    repo = MembershipRepository(db)
    membership = await repo.get(membership_id)
    if membership is None:
        raise NotFound("Membership not found", resource="membership", resource_id=membership_id)

    raise_for_decision(can_assign_role(caller, membership.institution_id, Role(membership.role)))

    user_id, institution_id = membership.user_id, membership.institution_id
    await repo.remove(membership_id)

    user = await UserRepository(db).get(user_id)
    if user is not None and user.active_institution_id == institution_id:
        await UserRepository(db).set_active_institution(user, None)
    await db.commit()
    logger.info(
        f"Membership removed: user={user_id} institution={institution_id} by={caller.user_id}"
    )
