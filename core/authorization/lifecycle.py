"""
Job lifecycle state machine.

Statuses move freely between each other through edits; there is no
enforced forward-only order. Tombstoning (``deleted_at``) is an orthogonal,
terminal axis. Transitions only *report* notification triggers; sending
them is the caller's job.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from core.errors import NotFound


class JobStatus(str, Enum):
    RASCUNHO = "rascunho"
    PUBLISHED = "published"
    OPEN = "open"
    CLOSED = "closed"


class TriggerKind(str, Enum):
    NEW = "new"
    MODIFIED = "modified"
    CLOSED = "closed"


ACTIVE_STATUSES = frozenset({JobStatus.PUBLISHED, JobStatus.OPEN})
DEFAULT_STATUS = JobStatus.RASCUNHO


@dataclass(frozen=True)
class JobChange:
    """Outcome of applying an edit to a job."""

    status: JobStatus
    status_changed: bool
    description_changed: bool
    triggers: tuple[TriggerKind, ...] = field(default=())

    @property
    def changed(self) -> bool:
        return self.status_changed or self.description_changed


def is_active(status) -> bool:
    try:
        return JobStatus(status) in ACTIVE_STATUSES
    except ValueError:
        return False


def _ensure_live(job) -> None:
    if getattr(job, "deleted_at", None) is not None:
        raise NotFound("Job not found", resource="job", resource_id=getattr(job, "id", None))


def transition(
    job,
    *,
    status: Optional[JobStatus | str] = None,
    description: Optional[str] = None,
) -> JobChange:
    """
    Compute the effect of editing ``status`` and/or ``description``.

    Entering ``closed`` fires CLOSED. Any other change of status or
    description fires MODIFIED. Editing a tombstoned job raises NotFound.
    The job itself is not mutated.
    """
    _ensure_live(job)

    current = JobStatus(job.status)
    new_status = JobStatus(status) if status is not None else current

    status_changed = new_status is not current
    description_changed = description is not None and description != job.description

    triggers: tuple[TriggerKind, ...] = ()
    if status_changed and new_status is JobStatus.CLOSED:
        triggers = (TriggerKind.CLOSED,)
    elif status_changed or description_changed:
        triggers = (TriggerKind.MODIFIED,)

    return JobChange(
        status=new_status,
        status_changed=status_changed,
        description_changed=description_changed,
        triggers=triggers,
    )


def creation_triggers(status: JobStatus | str) -> tuple[TriggerKind, ...]:
    """A job created straight into an active status announces itself."""
    if is_active(status):
        return (TriggerKind.NEW,)
    return ()


def tombstone(job, now: Optional[datetime] = None) -> tuple[TriggerKind, ...]:
    """
    Mark ``job`` as deleted.

    Irreversible: a tombstoned job can't be deleted again (NotFound).
    Savers are told the job closed.
    """
    _ensure_live(job)
    job.deleted_at = now or datetime.now(timezone.utc)
    return (TriggerKind.CLOSED,)
