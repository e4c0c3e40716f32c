from database.models.users import User
from database.models.institutions import Institution, InstitutionKind, Membership
from database.models.jobs import Job, SavedJob
from database.models.applications import Application, ApplicationStatus
from database.models.notifications import Notification

__all__ = [
    "User",
    "Institution",
    "InstitutionKind",
    "Membership",
    "Job",
    "SavedJob",
    "Application",
    "ApplicationStatus",
    "Notification",
]
