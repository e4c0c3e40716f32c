"""User, authentication, profile and tenant-switch schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.authorization.roles import Role


def check_password_strength(v: str) -> str:
    if not any(c.isalpha() for c in v) or not any(c.isdigit() for c in v):
        raise ValueError("Password must contain letters and digits")
    return v


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    institution_id: int = Field(..., description="University the student joins")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class MembershipOut(BaseModel):
    id: int
    institution_id: int
    institution_name: str
    role: Role


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    active_institution_id: Optional[int]
    created_at: datetime
    bio: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    course: Optional[str] = None
    graduation_year: Optional[int] = None
    last_login_at: Optional[datetime] = None


class ProfileOut(UserOut):
    memberships: list[MembershipOut] = []


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


class SwitchInstitutionRequest(BaseModel):
    institution_id: Optional[int] = Field(
        ..., description="Institution to act in; null clears it (superadmin only)"
    )


class ProfileUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    linkedin_url: Optional[str] = Field(None, max_length=500)
    github_url: Optional[str] = Field(None, max_length=500)
    portfolio_url: Optional[str] = Field(None, max_length=500)
    course: Optional[str] = Field(None, max_length=150)
    graduation_year: Optional[int] = Field(None, ge=1950, le=2100)

    @field_validator("first_name", "last_name")
    @classmethod
    def names_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Name fields cannot be null")
        return v

    @field_validator("linkedin_url", "github_url", "portfolio_url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=8, max_length=72)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)
