"""
User repository - database operations for User.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.applications import Application
from database.models.institutions import Membership
from database.models.jobs import Job, SavedJob
from database.models.notifications import Notification
from database.models.users import User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({
    "first_name",
    "last_name",
    "bio",
    "linkedin_url",
    "github_url",
    "portfolio_url",
    "course",
    "graduation_year",
})


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup."""
        if not email or not email.strip():
            return None
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str = "",
        active_institution_id: Optional[int] = None,
    ) -> User:
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            active_institution_id=active_institution_id,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def set_active_institution(self, user: User, institution_id: Optional[int]) -> User:
        user.active_institution_id = institution_id
        await self.db.flush()
        return user

    async def update_profile(self, user: User, fields: dict[str, Any]) -> User:
        for key, value in fields.items():
            if key not in PROFILE_FIELDS:
                raise ValueError(f"Field {key!r} is not a profile field")
            setattr(user, key, value)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def set_password(self, user: User, password_hash: str) -> User:
        user.password_hash = password_hash
        await self.db.flush()
        return user

    async def touch_login(self, user: User) -> User:
        user.last_login_at = datetime.now(timezone.utc)
        await self.db.flush()
        return user

    async def all_emails(self) -> list[str]:
        result = await self.db.execute(select(User.email).order_by(User.id))
        return list(result.scalars().all())

    async def delete(self, user: User) -> None:
        """
        Hard delete with explicit cascades.

        Removes notifications, memberships, saved jobs, applications,
        authored jobs and everything hanging off those jobs, then the user
        row itself.
        """
        authored = select(Job.id).where(Job.author_id == user.id).scalar_subquery()

        await self.db.execute(delete(SavedJob).where(SavedJob.job_id.in_(authored)))
        await self.db.execute(delete(Application).where(Application.job_id.in_(authored)))
        await self.db.execute(delete(SavedJob).where(SavedJob.user_id == user.id))
        await self.db.execute(delete(Application).where(Application.user_id == user.id))
        await self.db.execute(delete(Membership).where(Membership.user_id == user.id))
        await self.db.execute(delete(Notification).where(Notification.user_id == user.id))
        await self.db.execute(delete(Job).where(Job.author_id == user.id))
        await self.db.delete(user)
        await self.db.flush()
        logger.info(f"User deleted: id={user.id}")
