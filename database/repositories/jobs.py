"""
Repository for job postings.

Every read path excludes tombstoned rows unless ``include_deleted`` is set
explicitly for audit use.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.visibility import JobFilters, JobVisibility
from database.models.jobs import Job
from database.repositories.base import paginate

logger = logging.getLogger(__name__)

# Columns callers may change through ``update``
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "institution_id",
    "status",
    "is_public",
    "company_name",
    "contact_email",
    "contact_phone",
})


class JobRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, job_id: int, include_deleted: bool = False) -> Optional[Job]:
        query = select(Job).where(Job.id == job_id)
        if not include_deleted:
            query = query.where(Job.deleted_at.is_(None))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> Job:
        job = Job(**fields)
        self.db.add(job)
        await self.db.flush()
        await self.db.refresh(job)
        logger.info(
            f"Job created: id={job.id} institution={job.institution_id} author={job.author_id}"
        )
        return job

    async def update(self, job: Job, changes: dict[str, Any]) -> Job:
        """Apply ``changes`` to a live job; ``author_id`` is never writable."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        for field_name, value in changes.items():
            setattr(job, field_name, value)
        await self.db.flush()
        await self.db.refresh(job)
        return job

    async def soft_delete(self, job: Job, now: Optional[datetime] = None) -> Job:
        job.deleted_at = now or datetime.now(timezone.utc)
        await self.db.flush()
        logger.info(f"Job tombstoned: id={job.id}")
        return job

    async def list(
        self,
        visibility: JobVisibility,
        filters: Optional[JobFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Job], int]:
        """One page of jobs inside ``visibility`` narrowed by ``filters``."""
        filters = filters or JobFilters()
        query = (
            select(Job)
            .where(visibility.to_clause(Job))
            .where(filters.to_clause(Job))
            .order_by(*filters.order_by(Job))
        )
        return await paginate(self.db, query, page, limit)
