from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.lifecycle import ACTIVE_STATUSES
from database.models.jobs import Job, SavedJob
from database.models.users import User
from database.repositories.base import paginate, upsert_insert


class SavedJobRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(self, user_id: int, job_id: int) -> SavedJob:
        """Idempotent: saving twice keeps the original row."""
        stmt = (
            upsert_insert(self.db, SavedJob)
            .values(user_id=user_id, job_id=job_id)
            .on_conflict_do_nothing(index_elements=[SavedJob.user_id, SavedJob.job_id])
        )
        await self.db.execute(stmt)
        await self.db.flush()
        return await self.get_for(user_id, job_id)

    async def get_for(self, user_id: int, job_id: int) -> Optional[SavedJob]:
        result = await self.db.execute(
            select(SavedJob).where(SavedJob.user_id == user_id, SavedJob.job_id == job_id)
        )
        return result.scalar_one_or_none()

    async def unsave(self, user_id: int, job_id: int) -> bool:
        result = await self.db.execute(
            delete(SavedJob).where(SavedJob.user_id == user_id, SavedJob.job_id == job_id)
        )
        await self.db.flush()
        return result.rowcount > 0

    async def jobs_saved_by(
        self, user_id: int, page: int = 1, limit: int = 20
    ) -> tuple[Sequence[Job], int]:
        query = (
            select(Job)
            .join(SavedJob, SavedJob.job_id == Job.id)
            .where(SavedJob.user_id == user_id, Job.deleted_at.is_(None))
            .order_by(SavedJob.created_at.desc(), SavedJob.id.desc())
        )
        return await paginate(self.db, query, page, limit)

    async def saver_emails(self, job_id: int) -> list[str]:
        result = await self.db.execute(
            select(User.email)
            .join(SavedJob, SavedJob.user_id == User.id)
            .where(SavedJob.job_id == job_id)
            .order_by(User.id)
        )
        return list(result.scalars().all())

    async def due_reminders(self, saved_before: datetime) -> list[tuple[SavedJob, str, Job]]:
        """
        Saved jobs older than ``saved_before`` that were never reminded and
        whose job is still live and active.
        """
        result = await self.db.execute(
            select(SavedJob, User.email, Job)
            .join(User, User.id == SavedJob.user_id)
            .join(Job, Job.id == SavedJob.job_id)
            .where(
                SavedJob.created_at <= saved_before,
                SavedJob.reminded_at.is_(None),
                Job.deleted_at.is_(None),
                Job.status.in_(list(ACTIVE_STATUSES)),
            )
            .order_by(SavedJob.id)
        )
        return [(saved, email, job) for saved, email, job in result.all()]

    async def mark_reminded(self, saved_job_ids: list[int], when: datetime) -> None:
        if not saved_job_ids:
            return
        await self.db.execute(
            update(SavedJob).where(SavedJob.id.in_(saved_job_ids)).values(reminded_at=when)
        )
        await self.db.flush()
