from database.repositories.applications import ApplicationRepository
from database.repositories.institutions import InstitutionRepository
from database.repositories.jobs import JobRepository
from database.repositories.memberships import MembershipRepository
from database.repositories.notifications import NotificationRepository
from database.repositories.saved_jobs import SavedJobRepository
from database.repositories.users import UserRepository

__all__ = [
    "ApplicationRepository",
    "InstitutionRepository",
    "JobRepository",
    "MembershipRepository",
    "NotificationRepository",
    "SavedJobRepository",
    "UserRepository",
]
