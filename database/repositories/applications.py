from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.visibility import ApplicationScope
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job
from database.models.users import User
from database.repositories.base import paginate


class ApplicationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, application_id: int) -> Optional[Application]:
        return await self.db.get(Application, application_id)

    async def get_for(self, user_id: int, job_id: int) -> Optional[Application]:
        result = await self.db.execute(
            select(Application).where(
                Application.user_id == user_id,
                Application.job_id == job_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, user_id: int, job_id: int) -> Application:
        application = Application(
            user_id=user_id, job_id=job_id, status=ApplicationStatus.PENDING
        )
        self.db.add(application)
        await self.db.flush()
        await self.db.refresh(application)
        return application

    async def set_status(self, application: Application, status: ApplicationStatus) -> Application:
        application.status = status
        await self.db.flush()
        await self.db.refresh(application)
        return application

    async def delete(self, application: Application) -> None:
        await self.db.delete(application)
        await self.db.flush()

    async def for_job(
        self, job_id: int, page: int = 1, limit: int = 20
    ) -> tuple[Sequence[Application], int]:
        query = (
            select(Application)
            .where(Application.job_id == job_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        return await paginate(self.db, query, page, limit)

    async def for_user(
        self, user_id: int, page: int = 1, limit: int = 20
    ) -> tuple[Sequence[Application], int]:
        """A user's own applications, skipping those on tombstoned jobs."""
        query = (
            select(Application)
            .join(Job, Job.id == Application.job_id)
            .where(Application.user_id == user_id, Job.deleted_at.is_(None))
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        return await paginate(self.db, query, page, limit)

    async def managed(
        self,
        scope: ApplicationScope,
        status: Optional[ApplicationStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Application], int]:
        query = (
            select(Application)
            .join(Job, Job.id == Application.job_id)
            .where(scope.to_clause(Job))
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        if status is not None:
            query = query.where(Application.status == status)
        return await paginate(self.db, query, page, limit)

    async def applicant_email(self, application: Application) -> Optional[str]:
        return await self.db.scalar(select(User.email).where(User.id == application.user_id))
