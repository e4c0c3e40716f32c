"""
Application service functions.

Applying needs visibility on the job and an active status; managing
candidates follows the job's edit rights; applicants may withdraw while
their application is still pending.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.services.inbox import record_application_update
from api.services.jobs import load_job_for_action, load_viewable_job
from api.services.notifications import NotificationGateway
from core.authorization.decisions import DenyReason
from core.authorization.lifecycle import is_active
from core.authorization.permissions import can_cancel_application, can_manage_application
from core.authorization.roles import Caller
from core.authorization.visibility import managed_applications
from core.errors import Conflict, NotFound, ValidationError, raise_for_decision
from database.models.applications import Application, ApplicationStatus
from database.repositories import ApplicationRepository, JobRepository

logger = logging.getLogger(__name__)


def _not_found(application_id: int) -> NotFound:
    return NotFound("Application not found", resource="application", resource_id=application_id)


async def apply_to_job(db: AsyncSession, caller: Caller, job_id: int) -> Application:
    job = await load_viewable_job(db, caller, job_id)
    if not is_active(job.status):
        raise ValidationError("This job is not accepting applications", reason=DenyReason.INVALID_STATE)

    repo = ApplicationRepository(db)
    if await repo.get_for(caller.user_id, job.id) is not None:
        raise Conflict("You have already applied to this job")

    application = await repo.create(caller.user_id, job.id)
    await db.commit()
    logger.info(f"Application created: id={application.id} job={job.id} user={caller.user_id}")
    return application


async def list_job_applications(
    db: AsyncSession,
    caller: Caller,
    job_id: int,
    pagination: PaginationParams,
) -> tuple[Sequence[Application], int]:
    """Candidates of one job."""
    job = await load_job_for_action(
        db, caller, job_id, lambda job: can_manage_application(caller, job)
    )
    return await ApplicationRepository(db).for_job(job.id, pagination.page, pagination.limit)


async def list_my_applications(
    db: AsyncSession,
    caller: Caller,
    pagination: PaginationParams,
) -> tuple[Sequence[Application], int]:
    return await ApplicationRepository(db).for_user(
        caller.user_id, pagination.page, pagination.limit
    )


async def list_managed_applications(
    db: AsyncSession,
    caller: Caller,
    pagination: PaginationParams,
    status: Optional[ApplicationStatus] = None,
) -> tuple[Sequence[Application], int]:
    return await ApplicationRepository(db).managed(
        managed_applications(caller), status, pagination.page, pagination.limit
    )


async def update_application_status(
    db: AsyncSession,
    caller: Caller,
    application_id: int,
    status: ApplicationStatus,
    gateway: NotificationGateway,
) -> Application:
    """Move an application along and tell the applicant by inbox and email."""
    repo = ApplicationRepository(db)
    application = await repo.get(application_id)
    if application is None:
        raise _not_found(application_id)

    job = await JobRepository(db).get(application.job_id)
    if job is None:
        raise _not_found(application_id)
    raise_for_decision(can_manage_application(caller, job))

    if application.status is status:
        return application

    application = await repo.set_status(application, status)
    await record_application_update(db, application, job)
    recipient = await repo.applicant_email(application)
    await db.commit()

    if recipient:
        gateway.application_event(recipient, job, application)
    return application


async def cancel_application(db: AsyncSession, caller: Caller, application_id: int) -> None:
    repo = ApplicationRepository(db)
    application = await repo.get(application_id)
    if application is None:
        raise _not_found(application_id)

    raise_for_decision(can_cancel_application(caller, application))
    await repo.delete(application)
    await db.commit()
    logger.info(f"Application withdrawn: id={application_id} user={caller.user_id}")
