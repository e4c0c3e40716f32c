"""Plain test doubles shared by several test modules."""

from types import SimpleNamespace

from core.authorization.lifecycle import JobStatus


def make_job(**overrides):
    """In-memory job stand-in for engine tests."""
    fields = dict(
        id=1,
        title="Estágio em backend",
        description="Python",
        institution_id=1,
        author_id=10,
        status=JobStatus.OPEN,
        is_public=False,
        deleted_at=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class RecordingGateway:
    """Notification gateway double that remembers what it was asked to send."""

    def __init__(self):
        self.job_events = []
        self.application_events = []
        self.security_alerts = []

    def job_event(self, recipients, job, kind):
        self.job_events.append((sorted(recipients), job.id, kind))

    def application_event(self, recipient, job, application):
        self.application_events.append((recipient, job.id, application.id, application.status))

    def security_alert(self, recipient):
        self.security_alerts.append(recipient)
