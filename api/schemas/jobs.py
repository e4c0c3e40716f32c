"""Job request/response schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from core.authorization.lifecycle import JobStatus


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=20000)
    institution_id: Optional[int] = Field(
        None, description="Target institution; defaults to the active institution"
    )
    status: JobStatus = JobStatus.RASCUNHO
    company_name: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=30)


class JobUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=20000)
    institution_id: Optional[int] = None
    status: Optional[JobStatus] = None
    is_public: Optional[bool] = None
    company_name: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=30)


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    institution_id: int
    author_id: Optional[int]
    status: JobStatus
    is_public: bool
    company_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class JobQuery(BaseModel):
    search: Optional[str] = Field(None, max_length=200)
    status: Optional[JobStatus] = None
    institution_id: Optional[int] = None
    sort: Literal["asc", "desc"] = "desc"
