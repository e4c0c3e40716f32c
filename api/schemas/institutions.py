"""Institution and membership schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.authorization.roles import Role
from database.models.institutions import InstitutionKind


class InstitutionCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    kind: InstitutionKind = InstitutionKind.UNIVERSITY
    primary_color: Optional[str] = Field(None, max_length=20)
    logo_url: Optional[str] = Field(None, max_length=500)


class InstitutionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    primary_color: Optional[str] = Field(None, max_length=20)
    logo_url: Optional[str] = Field(None, max_length=500)


class InstitutionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    kind: InstitutionKind
    is_active: bool
    primary_color: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: datetime


class MembershipAssign(BaseModel):
    user_id: int
    institution_id: int
    role: Role


class MembershipRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    institution_id: int
    role: Role
