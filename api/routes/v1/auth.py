"""
Authentication endpoints: student registration and email/password login.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.users import AuthResponse, LoginRequest, RegisterRequest, UserOut
from api.services import users as user_service
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def auth_response(issued: user_service.IssuedToken) -> AuthResponse:
    return AuthResponse(
        access_token=issued.access_token,
        expires_in=issued.expires_in,
        user=UserOut.model_validate(issued.user),
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a student account at a university and sign in.",
)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    issued = await user_service.register(
        db,
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        institution_id=data.institution_id,
    )
    return auth_response(issued)


@router.post("/login", response_model=AuthResponse, summary="Login")
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for an access token."""
    issued = await user_service.login(db, data.email, data.password)
    return auth_response(issued)
