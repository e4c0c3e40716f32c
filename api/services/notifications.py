"""
Notification gateway.

Services hand lifecycle triggers to a gateway; the Celery implementation
enqueues delivery tasks and never lets a broker failure fail the request.
"""

import logging
from typing import Iterable, Protocol

from kombu.exceptions import KombuError
from redis.exceptions import RedisError

from core.authorization.lifecycle import TriggerKind
from core.config import settings
from database.models.applications import Application
from database.models.jobs import Job
from workers.tasks.notifications import (
    deliver_application_notification,
    deliver_job_notification,
    deliver_security_alert,
)

logger = logging.getLogger(__name__)


def dedupe(recipients: Iterable[str]) -> list[str]:
    """Case-insensitive de-duplication keeping first-seen order."""
    seen: set[str] = set()
    unique = []
    for email in recipients:
        key = email.strip().lower()
        if key and key not in seen:
            seen.add(key)
            unique.append(email.strip())
    return unique


class NotificationGateway(Protocol):
    def job_event(self, recipients: Iterable[str], job: Job, kind: TriggerKind) -> None: ...

    def application_event(self, recipient: str, job: Job, application: Application) -> None: ...

    def security_alert(self, recipient: str) -> None: ...


class NullNotificationGateway:
    """Drops every event; used when notifications are disabled."""

    def job_event(self, recipients: Iterable[str], job: Job, kind: TriggerKind) -> None:
        logger.debug(f"Notifications disabled; dropping {kind.value} for job {job.id}")

    def application_event(self, recipient: str, job: Job, application: Application) -> None:
        logger.debug(f"Notifications disabled; dropping application {application.id} event")

    def security_alert(self, recipient: str) -> None:
        logger.debug("Notifications disabled; dropping security alert")


class CeleryNotificationGateway:
    """Enqueues delivery tasks on the notifications queue."""

    def job_event(self, recipients: Iterable[str], job: Job, kind: TriggerKind) -> None:
        unique = dedupe(recipients)
        if not unique:
            return
        try:
            deliver_job_notification.delay(
                recipients=unique,
                job_id=job.id,
                job_title=job.title,
                kind=kind.value,
            )
        except (KombuError, RedisError, OSError) as e:
            logger.error(f"Failed to enqueue {kind.value} notification for job {job.id}: {e}")
            return
        logger.info(f"Enqueued {kind.value} notification: job={job.id} recipients={len(unique)}")

    def application_event(self, recipient: str, job: Job, application: Application) -> None:
        try:
            deliver_application_notification.delay(
                recipient=recipient,
                job_id=job.id,
                job_title=job.title,
                application_id=application.id,
                status=application.status.value,
            )
        except (KombuError, RedisError, OSError) as e:
            logger.error(
                f"Failed to enqueue notification for application {application.id}: {e}"
            )

    def security_alert(self, recipient: str) -> None:
        try:
            deliver_security_alert.delay(recipient=recipient)
        except (KombuError, RedisError, OSError) as e:
            logger.error(f"Failed to enqueue security alert: {e}")


def get_notification_gateway() -> NotificationGateway:
    """FastAPI dependency selecting the gateway from settings."""
    if settings.notifications_enabled:
        return CeleryNotificationGateway()
    return NullNotificationGateway()
