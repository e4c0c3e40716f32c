"""
Visibility filter for job listings.

A ``JobVisibility`` describes which jobs a caller may list. It renders the
same predicate two ways: as a SQLAlchemy clause for repositories
(``to_clause``) and as an in-memory check (``allows``) so tests and
services can evaluate a single job without a database round trip.
Tombstoned jobs are always excluded.
"""

from dataclasses import dataclass
from typing import Literal, Optional

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from core.authorization.lifecycle import ACTIVE_STATUSES, JobStatus, is_active
from core.authorization.roles import Caller
from core.errors import NoActiveTenant


@dataclass(frozen=True)
class JobVisibility:
    """
    Union of the job sets a caller may see.

    - ``unrestricted``: every live job
    - local set: jobs of ``institution_id``; every status when
      ``all_local_statuses``, else active ones plus those authored by
      ``viewer_id``
    - ``authored_by``: jobs written by that user, any status
    - ``include_public``: public jobs in an active status, any institution
    """

    unrestricted: bool = False
    institution_id: Optional[int] = None
    all_local_statuses: bool = False
    viewer_id: Optional[int] = None
    authored_by: Optional[int] = None
    include_public: bool = False

    def to_clause(self, job_model) -> ColumnElement[bool]:
        live = job_model.deleted_at.is_(None)
        if self.unrestricted:
            return live

        active = job_model.status.in_(list(ACTIVE_STATUSES))
        branches = []

        if self.institution_id is not None:
            local = job_model.institution_id == self.institution_id
            if not self.all_local_statuses:
                allowed = active
                if self.viewer_id is not None:
                    allowed = or_(active, job_model.author_id == self.viewer_id)
                local = and_(local, allowed)
            branches.append(local)

        if self.authored_by is not None:
            branches.append(job_model.author_id == self.authored_by)

        if self.include_public:
            branches.append(and_(job_model.is_public.is_(True), active))

        if not branches:
            return and_(live, false())
        return and_(live, or_(*branches))

    def allows(self, job) -> bool:
        if job.deleted_at is not None:
            return False
        if self.unrestricted:
            return True

        active = is_active(job.status)

        if self.institution_id is not None and job.institution_id == self.institution_id:
            if self.all_local_statuses or active:
                return True
            if self.viewer_id is not None and job.author_id == self.viewer_id:
                return True

        if self.authored_by is not None and job.author_id == self.authored_by:
            return True

        return bool(self.include_public and job.is_public and active)


def visible_jobs(caller: Caller, active_institution_id: Optional[int] = None) -> JobVisibility:
    """
    Jobs a caller may list through its tenant lens.

    Raises NoActiveTenant for a non-superadmin without a tenant.
    """
    if caller.is_superadmin:
        return JobVisibility(unrestricted=True)

    tenant = active_institution_id or caller.active_institution_id
    if tenant is None:
        raise NoActiveTenant("Select an active institution to list jobs")

    return JobVisibility(
        institution_id=tenant,
        all_local_statuses=caller.is_admin_at(tenant),
        viewer_id=caller.user_id,
        include_public=True,
    )


def public_jobs() -> JobVisibility:
    """Anonymous catalogue."""
    return JobVisibility(include_public=True)


def managed_jobs(caller: Caller) -> JobVisibility:
    """Jobs shown on the caller's management screen."""
    if caller.is_superadmin or caller.is_admin_anywhere:
        return JobVisibility(unrestricted=True)
    return JobVisibility(authored_by=caller.user_id)


@dataclass(frozen=True)
class ApplicationScope:
    """
    Applications a caller may manage, expressed over the parent job.

    Callers join ``Application`` to ``Job`` and filter with ``to_clause``.
    """

    unrestricted: bool = False
    institution_id: Optional[int] = None
    author_id: Optional[int] = None

    def to_clause(self, job_model) -> ColumnElement[bool]:
        live = job_model.deleted_at.is_(None)
        if self.unrestricted:
            return live
        branches = []
        if self.institution_id is not None:
            branches.append(job_model.institution_id == self.institution_id)
        if self.author_id is not None:
            branches.append(job_model.author_id == self.author_id)
        if not branches:
            return and_(live, false())
        return and_(live, or_(*branches))

    def allows(self, job) -> bool:
        if job.deleted_at is not None:
            return False
        if self.unrestricted:
            return True
        if self.institution_id is not None and job.institution_id == self.institution_id:
            return True
        return self.author_id is not None and job.author_id == self.author_id


def managed_applications(caller: Caller) -> ApplicationScope:
    if caller.is_superadmin:
        return ApplicationScope(unrestricted=True)
    tenant = caller.active_institution_id
    if tenant is not None and caller.is_admin_at(tenant):
        return ApplicationScope(institution_id=tenant, author_id=caller.user_id)
    return ApplicationScope(author_id=caller.user_id)


@dataclass(frozen=True)
class JobFilters:
    """Caller-supplied filters; they narrow a visibility, never widen it."""

    search: Optional[str] = None
    status: Optional[JobStatus] = None
    institution_id: Optional[int] = None
    sort: Literal["asc", "desc"] = "desc"

    def to_clause(self, job_model) -> ColumnElement[bool]:
        clauses = []
        if self.search:
            clauses.append(job_model.title.ilike(f"%{self.search.strip()}%"))
        if self.status is not None:
            clauses.append(job_model.status == JobStatus(self.status))
        if self.institution_id is not None:
            clauses.append(job_model.institution_id == self.institution_id)
        if not clauses:
            return true()
        return and_(*clauses)

    def order_by(self, job_model):
        column = job_model.created_at
        return (column.asc(), job_model.id.asc()) if self.sort == "asc" else (
            column.desc(), job_model.id.desc()
        )
