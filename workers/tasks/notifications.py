"""Notification delivery tasks."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from celery import Task

from core.config import settings
from core.integrations.email import EmailService
from database.engine import AsyncSessionLocal, db_engine
from database.repositories.saved_jobs import SavedJobRepository
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)

# Recipients per SMTP message; everyone goes in BCC
BATCH_SIZE = 50

JOB_SUBJECTS = {
    "new": "Nova vaga: {title}",
    "modified": "Vaga atualizada: {title}",
    "closed": "Vaga encerrada: {title}",
}

JOB_LINES = {
    "new": "A new job was posted: {title}.",
    "modified": "A job you saved was updated: {title}.",
    "closed": "A job you saved is no longer accepting applications: {title}.",
}


def _batches(items: List[str], size: int = BATCH_SIZE):
    for start in range(0, len(items), size):
        yield items[start:start + size]


@celery_app.task(name="workers.tasks.notifications.deliver_job_notification", bind=True)
def deliver_job_notification(
    self: Task,
    recipients: List[str],
    job_id: int,
    job_title: str,
    kind: str,
) -> dict:
    """Email a job trigger (new/modified/closed) to its recipients.

    Args:
        recipients: Email addresses, already de-duplicated
        job_id: Job the trigger is about
        job_title: Title shown in the message
        kind: Trigger kind value

    Returns:
        Dictionary with delivery counts
    """
    if kind not in JOB_SUBJECTS:
        logger.error(f"Unknown job notification kind {kind!r} for job {job_id}")
        return {"status": "skipped", "job_id": job_id, "sent": 0}

    email_service = EmailService()
    subject = JOB_SUBJECTS[kind].format(title=job_title)
    body = JOB_LINES[kind].format(title=job_title)

    sent = 0
    for batch in _batches(recipients):
        if not email_service.send_email(settings.from_email, subject, body, bcc=batch):
            # Retry only the recipients not reached yet
            raise self.retry(
                kwargs={
                    "recipients": recipients[sent:],
                    "job_id": job_id,
                    "job_title": job_title,
                    "kind": kind,
                },
                countdown=120,
                max_retries=5,
            )
        sent += len(batch)

    logger.info(f"Job notification delivered: job={job_id} kind={kind} recipients={sent}")
    return {"status": "sent", "job_id": job_id, "sent": sent}


@celery_app.task(name="workers.tasks.notifications.deliver_application_notification", bind=True)
def deliver_application_notification(
    self: Task,
    recipient: str,
    job_id: int,
    job_title: str,
    application_id: int,
    status: str,
) -> dict:
    """Tell an applicant their application status changed."""
    subject = f"Candidatura atualizada: {job_title}"
    body = f"Your application to {job_title} is now {status}."

    if not EmailService().send_email(recipient, subject, body):
        raise self.retry(countdown=120, max_retries=5)

    logger.info(f"Application notification delivered: application={application_id} status={status}")
    return {"status": "sent", "application_id": application_id}


@celery_app.task(name="workers.tasks.notifications.deliver_security_alert", bind=True)
def deliver_security_alert(self: Task, recipient: str) -> dict:
    """Warn a user that their password was just changed."""
    subject = "Alerta de segurança: senha alterada"
    body = (
        "The password for your account was changed. "
        "If this wasn't you, reset it immediately and contact support."
    )
    if not EmailService().send_email(recipient, subject, body):
        raise self.retry(countdown=60, max_retries=3)

    logger.info("Security alert delivered")
    return {"status": "sent"}


async def _collect_and_mark_reminders(now: datetime, days: int) -> List[dict]:
    try:
        async with AsyncSessionLocal() as session:
            repo = SavedJobRepository(session)
            due = await repo.due_reminders(now - timedelta(days=days))
            await repo.mark_reminded([saved.id for saved, _, _ in due], now)
            await session.commit()
    finally:
        # Each sweep runs in a fresh event loop; pooled connections can't outlive it
        await db_engine.dispose()

    return [
        {"recipient": email, "job_id": job.id, "job_title": job.title}
        for _, email, job in due
    ]


@celery_app.task(name="workers.tasks.notifications.send_saved_job_reminders")
def send_saved_job_reminders(days: Optional[int] = None) -> dict:
    """Remind users about jobs they saved a while ago and that are still open."""
    days = days or settings.saved_job_reminder_days
    reminders = asyncio.run(_collect_and_mark_reminders(datetime.now(timezone.utc), days))

    for reminder in reminders:
        send_saved_job_reminder.delay(**reminder)

    logger.info(f"Queued {len(reminders)} saved job reminder(s)")
    return {"status": "queued", "total": len(reminders)}


@celery_app.task(name="workers.tasks.notifications.send_saved_job_reminder", bind=True)
def send_saved_job_reminder(self: Task, recipient: str, job_id: int, job_title: str) -> dict:
    subject = f"Lembrete: {job_title}"
    body = f"You saved {job_title} and it is still open. Don't forget to apply."
    if not EmailService().send_email(recipient, subject, body):
        raise self.retry(countdown=300, max_retries=3)
    return {"status": "sent", "job_id": job_id}
