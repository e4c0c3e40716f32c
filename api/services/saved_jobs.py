"""Saved-job service functions."""

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.services.jobs import load_viewable_job
from core.authorization.roles import Caller
from core.errors import NotFound
from database.models.jobs import Job, SavedJob
from database.repositories import SavedJobRepository


async def save_job(db: AsyncSession, caller: Caller, job_id: int) -> SavedJob:
    """Bookmark a job the caller can see. Saving twice is a no-op."""
    job = await load_viewable_job(db, caller, job_id)
    saved = await SavedJobRepository(db).save(caller.user_id, job.id)
    await db.commit()
    return saved


async def unsave_job(db: AsyncSession, caller: Caller, job_id: int) -> None:
    removed = await SavedJobRepository(db).unsave(caller.user_id, job_id)
    if not removed:
        raise NotFound("Saved job not found", resource="saved_job", resource_id=job_id)
    await db.commit()


async def list_saved_jobs(
    db: AsyncSession,
    caller: Caller,
    pagination: PaginationParams,
) -> tuple[Sequence[Job], int]:
    return await SavedJobRepository(db).jobs_saved_by(
        caller.user_id, pagination.page, pagination.limit
    )
