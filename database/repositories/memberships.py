"""
Repository for the (user, institution, role) membership relation.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.roles import MembershipGrant, Role
from database.models.institutions import Institution, Membership
from database.models.users import User
from database.repositories.base import upsert_insert

logger = logging.getLogger(__name__)


class MembershipRepository:
    """Reads and atomic writes of memberships."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def memberships_of(self, user_id: int) -> list[MembershipGrant]:
        """Fresh snapshot of a user's grants, as the permission engine consumes them."""
        result = await self.db.execute(
            select(Membership.institution_id, Membership.role)
            .where(Membership.user_id == user_id)
            .order_by(Membership.institution_id)
        )
        return [MembershipGrant(institution_id, Role(role)) for institution_id, role in result.all()]

    async def get(self, membership_id: int) -> Optional[Membership]:
        return await self.db.get(Membership, membership_id)

    async def get_for(self, user_id: int, institution_id: int) -> Optional[Membership]:
        result = await self.db.execute(
            select(Membership).where(
                Membership.user_id == user_id,
                Membership.institution_id == institution_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_with_institutions(self, user_id: int) -> list[tuple[Membership, Institution]]:
        result = await self.db.execute(
            select(Membership, Institution)
            .join(Institution, Institution.id == Membership.institution_id)
            .where(Membership.user_id == user_id)
            .order_by(Institution.name)
        )
        return [(membership, institution) for membership, institution in result.all()]

    async def upsert(self, user_id: int, institution_id: int, role: Role) -> Membership:
        """
        Assign ``role`` to the user in the institution.

        A single ``INSERT ... ON CONFLICT (user_id, institution_id) DO UPDATE``
        so concurrent assignments can never leave two rows for the pair.
        """
        base_insert = upsert_insert(self.db, Membership).values(
            user_id=user_id,
            institution_id=institution_id,
            role=role,
        )
        stmt = base_insert.on_conflict_do_update(
            index_elements=[Membership.user_id, Membership.institution_id],
            set_={
                "role": base_insert.excluded.role,
                "updated_at": func.now(),
            },
        ).returning(Membership)
        result = await self.db.execute(
            stmt, execution_options={"populate_existing": True}
        )
        membership = result.scalar_one()
        await self.db.flush()
        logger.info(
            f"Membership upserted: user={user_id} institution={institution_id} role={role.value}"
        )
        return membership

    async def remove(self, membership_id: int) -> bool:
        result = await self.db.execute(
            delete(Membership).where(Membership.id == membership_id)
        )
        await self.db.flush()
        return result.rowcount > 0

    async def member_emails(self, institution_id: int) -> list[str]:
        result = await self.db.execute(
            select(User.email)
            .join(Membership, Membership.user_id == User.id)
            .where(Membership.institution_id == institution_id)
            .order_by(User.id)
        )
        return list(result.scalars().all())
