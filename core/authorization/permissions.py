"""
Permission engine.

Pure decision functions over a caller snapshot and a target entity. None of
them touch the database or the request; callers load a fresh membership
snapshot per request and pass it in, so every function here is safe to call
concurrently.

Rules:
1. ``superadmin`` anywhere is allowed everything
2. ``admin`` is allowed everything inside institutions where it holds the row
3. authors keep edit/delete/manage rights over their jobs even after their
   membership in the job's institution changes or is removed
4. operator roles (professor, coordenador, empresa) create jobs only in
   their own institution and never move a job between institutions
5. public jobs in an active status are viewable by anyone, anonymous included
"""

import logging
from typing import Optional, Protocol

from core.authorization.decisions import Decision, DenyReason, Grant
from core.authorization.lifecycle import ACTIVE_STATUSES, JobStatus
from core.authorization.roles import JOB_CREATOR_ROLES, Caller, Role

logger = logging.getLogger(__name__)


class JobLike(Protocol):
    institution_id: int
    author_id: Optional[int]
    status: JobStatus
    is_public: bool


class ApplicationLike(Protocol):
    user_id: int
    status: str


def _log_denial(action: str, caller: Optional[Caller], decision: Decision, **context) -> Decision:
    if not decision.allowed:
        logger.warning(
            f"Denied {action}: user={caller.user_id if caller else 'anonymous'} "
            f"reason={decision.reason.value} "
            + " ".join(f"{key}={value}" for key, value in context.items())
        )
    return decision


def _is_active_status(status) -> bool:
    try:
        return JobStatus(status) in ACTIVE_STATUSES
    except ValueError:
        return False


def can_create_job(caller: Caller, target_institution_id: Optional[int] = None) -> Decision:
    """
    Check whether the caller may create a job in the target institution.

    A missing target falls back to the caller's active institution.
    """
    target = target_institution_id or caller.active_institution_id

    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)

    if target is None:
        return _log_denial("create_job", caller, Decision.deny(DenyReason.NO_ACTIVE_TENANT))

    role = caller.role_at(target)
    if role is Role.ADMIN:
        return Decision.allow(Grant.INSTITUTION_ADMIN)
    if role in JOB_CREATOR_ROLES:
        return Decision.allow(Grant.OPERATOR)

    return _log_denial(
        "create_job",
        caller,
        Decision.deny(DenyReason.INSUFFICIENT_ROLE),
        institution=target,
    )


def seed_is_public(caller: Caller, institution_id: int) -> bool:
    """Initial visibility of a new job: only company postings start public."""
    return caller.role_at(institution_id) is Role.EMPRESA


def _author_or_admin(caller: Caller, job: JobLike) -> Decision:
    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)
    if job.author_id is not None and job.author_id == caller.user_id:
        return Decision.allow(Grant.AUTHOR)
    if caller.is_admin_at(job.institution_id):
        return Decision.allow(Grant.INSTITUTION_ADMIN)
    return Decision.deny(DenyReason.INSUFFICIENT_ROLE)


def can_edit_job(
    caller: Caller,
    job: JobLike,
    new_institution_id: Optional[int] = None,
) -> Decision:
    """
    Check whether the caller may edit a job.

    When ``new_institution_id`` moves the job to another tenant the caller
    must also be superadmin or admin of the destination.
    """
    decision = _author_or_admin(caller, job)
    if not decision.allowed:
        return _log_denial("edit_job", caller, decision, institution=job.institution_id)

    transferring = new_institution_id is not None and new_institution_id != job.institution_id
    if transferring and not caller.is_superadmin:
        if not caller.is_admin_at(new_institution_id):
            return _log_denial(
                "transfer_job",
                caller,
                Decision.deny(DenyReason.TRANSFER_NOT_PERMITTED),
                source=job.institution_id,
                destination=new_institution_id,
            )

    return decision


def can_delete_job(caller: Caller, job: JobLike) -> Decision:
    return _log_denial(
        "delete_job", caller, _author_or_admin(caller, job), institution=job.institution_id
    )


def can_manage_application(caller: Caller, job: JobLike) -> Decision:
    """Gate for listing a job's candidates and changing application status."""
    return _log_denial(
        "manage_application", caller, _author_or_admin(caller, job), institution=job.institution_id
    )


def can_view_job(caller: Optional[Caller], job: JobLike) -> Decision:
    """
    Check whether a caller (``None`` for anonymous) may view a job.

    Public jobs in an active status are open to everyone. Anything else
    needs a membership in the job's institution or a global admin role.
    """
    if job.is_public and _is_active_status(job.status):
        return Decision.allow(Grant.PUBLIC)

    if caller is None:
        return Decision.deny(DenyReason.UNAUTHENTICATED)

    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)
    if caller.is_member_of(job.institution_id):
        return Decision.allow(Grant.MEMBER)
    if caller.is_admin_anywhere:
        return Decision.allow(Grant.GLOBAL_ADMIN)

    return _log_denial(
        "view_job", caller, Decision.deny(DenyReason.PRIVATE_JOB), institution=job.institution_id
    )


def can_administer_institutions(caller: Caller) -> Decision:
    """Create, list, deactivate and reactivate institutions."""
    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)
    return _log_denial("administer_institutions", caller, Decision.deny(DenyReason.INSUFFICIENT_ROLE))


def can_manage_institution(caller: Caller, institution_id: int) -> Decision:
    """
    Edit an institution's own settings.

    Institution admins may only edit the institution they are currently
    acting in.
    """
    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)
    if caller.active_institution_id != institution_id:
        return _log_denial(
            "manage_institution",
            caller,
            Decision.deny(DenyReason.NOT_MEMBER),
            institution=institution_id,
        )
    if caller.is_admin_at(institution_id):
        return Decision.allow(Grant.INSTITUTION_ADMIN)
    return _log_denial(
        "manage_institution",
        caller,
        Decision.deny(DenyReason.INSUFFICIENT_ROLE),
        institution=institution_id,
    )


def can_assign_role(caller: Caller, institution_id: int, role: Role) -> Decision:
    """
    Grant, change or revoke ``role`` in ``institution_id``.

    Only a superadmin hands out or takes away ``superadmin``.
    """
    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)
    if caller.is_admin_at(institution_id) and role is not Role.SUPERADMIN:
        return Decision.allow(Grant.INSTITUTION_ADMIN)
    return _log_denial(
        "assign_role",
        caller,
        Decision.deny(DenyReason.INSUFFICIENT_ROLE),
        institution=institution_id,
        role=role.value,
    )


def can_cancel_application(caller: Caller, application: ApplicationLike) -> Decision:
    """Applicants withdraw their own applications while still pending."""
    if application.user_id != caller.user_id:
        return _log_denial("cancel_application", caller, Decision.deny(DenyReason.NOT_OWNER))
    if str(getattr(application.status, "value", application.status)) != "PENDING":
        return _log_denial("cancel_application", caller, Decision.deny(DenyReason.INVALID_STATE))
    return Decision.allow(Grant.OWNER)


def can_delete_user(caller: Caller, target: Caller) -> Decision:
    """
    Hard-delete another user.

    Institution admins may delete a user only when they administer every
    institution the user belongs to; superadmins are only deleted by peers.
    """
    if caller.is_superadmin:
        return Decision.allow(Grant.SUPERADMIN)
    if target.is_superadmin or not target.institution_ids:
        return _log_denial("delete_user", caller, Decision.deny(DenyReason.INSUFFICIENT_ROLE))
    if all(caller.is_admin_at(institution_id) for institution_id in target.institution_ids):
        return Decision.allow(Grant.INSTITUTION_ADMIN)
    return _log_denial("delete_user", caller, Decision.deny(DenyReason.INSUFFICIENT_ROLE))
