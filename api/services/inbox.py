"""
In-app notification inbox.

Each user only ever sees and marks their own notifications; a notification
belonging to someone else looks missing.
"""

import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.roles import Caller
from core.errors import NotFound
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job
from database.models.notifications import Notification
from database.repositories import NotificationRepository

logger = logging.getLogger(__name__)

INBOX_SIZE = 20

APPLICATION_TITLE = "Atualização de Candidatura"

APPLICATION_MESSAGES = {
    ApplicationStatus.ACCEPTED: (
        'Congratulations! You were selected for the interview stage of "{title}".'
    ),
    ApplicationStatus.REJECTED: (
        'Thank you for your interest in "{title}". '
        "Unfortunately we will not move forward with your profile at this time."
    ),
}
DEFAULT_APPLICATION_MESSAGE = 'The status of your application to "{title}" changed to: {status}'


def application_status_message(job: Job, status: ApplicationStatus) -> str:
    template = APPLICATION_MESSAGES.get(status, DEFAULT_APPLICATION_MESSAGE)
    return template.format(title=job.title, status=status.value)


async def record_application_update(
    db: AsyncSession, application: Application, job: Job
) -> Notification:
    """Add an inbox entry for the applicant. The caller commits."""
    return await NotificationRepository(db).create(
        user_id=application.user_id,
        title=APPLICATION_TITLE,
        message=application_status_message(job, application.status),
        link=f"/jobs/{job.id}",
    )


async def list_notifications(
    db: AsyncSession, caller: Caller
) -> tuple[Sequence[Notification], int]:
    """The most recent notifications plus the caller's total unread count."""
    repo = NotificationRepository(db)
    rows = await repo.recent(caller.user_id, limit=INBOX_SIZE)
    unread = await repo.unread_count(caller.user_id)
    return rows, unread


async def mark_read(db: AsyncSession, caller: Caller, notification_id: int) -> None:
    if not await NotificationRepository(db).mark_read(caller.user_id, notification_id):
        raise NotFound(
            "Notification not found", resource="notification", resource_id=notification_id
        )
    await db.commit()


async def mark_all_read(db: AsyncSession, caller: Caller) -> int:
    updated = await NotificationRepository(db).mark_all_read(caller.user_id)
    await db.commit()
    logger.info(f"Notifications marked read: user={caller.user_id} count={updated}")
    return updated
