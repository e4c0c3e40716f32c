from datetime import datetime

from pydantic import BaseModel, ConfigDict

from database.models.applications import ApplicationStatus


class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    job_id: int
    status: ApplicationStatus
    created_at: datetime


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
