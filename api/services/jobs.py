"""
Job service functions.

Each function takes the request's session and the caller snapshot, asks the
permission engine, then reads or writes through the repositories. Lifecycle
triggers are handed to the notification gateway only after the commit.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.services.notifications import NotificationGateway
from core.authorization.decisions import Decision, DenyReason
from core.authorization.lifecycle import TriggerKind, creation_triggers, tombstone, transition
from core.authorization.permissions import (
    can_create_job,
    can_delete_job,
    can_edit_job,
    can_view_job,
    seed_is_public,
)
from core.authorization.roles import Caller
from core.authorization.tenant import resolve_active_institution
from core.authorization.visibility import JobFilters, managed_jobs, public_jobs, visible_jobs
from core.errors import Forbidden, NotFound, ValidationError, raise_for_decision
from database.models.jobs import Job
from database.repositories import (
    InstitutionRepository,
    JobRepository,
    MembershipRepository,
    SavedJobRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

# Fields a PATCH may explicitly clear
CLEARABLE_FIELDS = frozenset({"company_name", "contact_email", "contact_phone"})


def _not_found(job_id: int) -> NotFound:
    return NotFound("Job not found", resource="job", resource_id=job_id)


async def load_viewable_job(db: AsyncSession, caller: Optional[Caller], job_id: int) -> Job:
    """Fetch a live job the caller may see; hidden and missing jobs look alike."""
    job = await JobRepository(db).get(job_id)
    if job is None:
        raise _not_found(job_id)
    raise_for_decision(can_view_job(caller, job))
    return job


async def load_job_for_action(
    db: AsyncSession,
    caller: Caller,
    job_id: int,
    decide: Callable[[Job], Decision],
) -> Job:
    """
    Fetch a live job and authorize an action on it.

    The action's own rule runs first so author rights hold without
    visibility. A denial is answered as for viewing when the caller can't
    see the job, so hidden jobs still look missing.
    """
    job = await JobRepository(db).get(job_id)
    if job is None:
        raise _not_found(job_id)
    decision = decide(job)
    if not decision.allowed:
        raise_for_decision(can_view_job(caller, job))
        raise_for_decision(decision)
    return job


async def recipients_for(db: AsyncSession, job: Job, kind: TriggerKind) -> list[str]:
    """
    Who hears about a lifecycle event.

    NEW goes to every user for public jobs and to the institution's members
    for private ones; MODIFIED and CLOSED go to the users who saved the job.
    """
    if kind is TriggerKind.NEW:
        if job.is_public:
            return await UserRepository(db).all_emails()
        return await MembershipRepository(db).member_emails(job.institution_id)
    return await SavedJobRepository(db).saver_emails(job.id)


async def _announce(
    db: AsyncSession,
    gateway: NotificationGateway,
    job: Job,
    triggers: Iterable[TriggerKind],
) -> None:
    for kind in triggers:
        gateway.job_event(await recipients_for(db, job, kind), job, kind)


async def list_public_jobs(
    db: AsyncSession,
    filters: JobFilters,
    pagination: PaginationParams,
) -> tuple[Sequence[Job], int]:
    return await JobRepository(db).list(public_jobs(), filters, pagination.page, pagination.limit)


async def list_jobs(
    db: AsyncSession,
    caller: Caller,
    filters: JobFilters,
    pagination: PaginationParams,
) -> tuple[Sequence[Job], int]:
    """Tenant listing through the caller's active institution."""
    institution = await InstitutionRepository(db).get(caller.active_institution_id)
    tenant = resolve_active_institution(caller, institution)
    visibility = visible_jobs(caller, tenant)
    return await JobRepository(db).list(visibility, filters, pagination.page, pagination.limit)


async def list_managed_jobs(
    db: AsyncSession,
    caller: Caller,
    filters: JobFilters,
    pagination: PaginationParams,
) -> tuple[Sequence[Job], int]:
    return await JobRepository(db).list(
        managed_jobs(caller), filters, pagination.page, pagination.limit
    )


async def get_job(db: AsyncSession, caller: Optional[Caller], job_id: int) -> Job:
    return await load_viewable_job(db, caller, job_id)


async def create_job(
    db: AsyncSession,
    caller: Caller,
    fields: dict[str, Any],
    gateway: NotificationGateway,
) -> Job:
    """
    Create a job in the named or active institution.

    ``is_public`` is seeded from the author's role there and ``author_id``
    is always the caller.
    """
    fields = dict(fields)
    requested = fields.pop("institution_id", None)

    raise_for_decision(can_create_job(caller, requested))

    target = requested or caller.active_institution_id
    if target is None:
        raise ValidationError("institution_id is required when no institution is active")

    institution = await InstitutionRepository(db).get(target)
    if institution is None:
        raise NotFound("Institution not found", resource="institution", resource_id=target)
    if not institution.is_active and not caller.is_superadmin:
        raise Forbidden("Institution is suspended", reason=DenyReason.INSTITUTION_INACTIVE)

    job = await JobRepository(db).create(
        **fields,
        institution_id=target,
        author_id=caller.user_id,
        is_public=seed_is_public(caller, target),
    )
    triggers = creation_triggers(job.status)
    await db.commit()

    await _announce(db, gateway, job, triggers)
    return job


async def update_job(
    db: AsyncSession,
    caller: Caller,
    job_id: int,
    changes: dict[str, Any],
    gateway: NotificationGateway,
) -> Job:
    """Partial edit, including transfer to another institution."""
    changes = {
        key: value for key, value in changes.items()
        if value is not None or key in CLEARABLE_FIELDS
    }
    repo = JobRepository(db)
    new_institution_id = changes.get("institution_id")
    job = await load_job_for_action(
        db, caller, job_id, lambda job: can_edit_job(caller, job, new_institution_id)
    )

    if new_institution_id is not None and new_institution_id != job.institution_id:
        if await InstitutionRepository(db).get(new_institution_id) is None:
            raise NotFound(
                "Institution not found", resource="institution", resource_id=new_institution_id
            )
        logger.info(
            f"Job transferred: id={job.id} from={job.institution_id} to={new_institution_id} "
            f"by={caller.user_id}"
        )

    change = transition(job, status=changes.get("status"), description=changes.get("description"))
    job = await repo.update(job, changes)
    await db.commit()

    await _announce(db, gateway, job, change.triggers)
    return job


async def delete_job(
    db: AsyncSession,
    caller: Caller,
    job_id: int,
    gateway: NotificationGateway,
) -> None:
    repo = JobRepository(db)
    job = await load_job_for_action(db, caller, job_id, lambda job: can_delete_job(caller, job))

    triggers = tombstone(job)
    await repo.soft_delete(job, job.deleted_at)
    await db.commit()

    await _announce(db, gateway, job, triggers)
