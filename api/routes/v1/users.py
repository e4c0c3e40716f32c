"""
User endpoints: profile, password, active institution switch and hard deletion.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_caller
from api.routes.v1.auth import auth_response
from api.schemas.common import MessageResponse
from api.schemas.users import (
    AuthResponse,
    ChangePasswordRequest,
    MembershipOut,
    ProfileOut,
    ProfileUpdate,
    SwitchInstitutionRequest,
    UserOut,
)
from api.services import users as user_service
from api.services.notifications import NotificationGateway, get_notification_gateway
from core.authorization.roles import Caller
from database.engine import get_db

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ProfileOut, summary="Current User")
async def get_me(
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    """Profile of the caller with every institution they belong to."""
    user, memberships = await user_service.get_profile(db, caller)
    return ProfileOut(
        **UserOut.model_validate(user).model_dump(),
        memberships=[
            MembershipOut(
                id=membership.id,
                institution_id=institution.id,
                institution_name=institution.name,
                role=membership.role,
            )
            for membership, institution in memberships
        ],
    )


@router.patch("/me", response_model=UserOut, summary="Update Profile")
async def update_me(
    data: ProfileUpdate,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_profile(db, caller, data.model_dump(exclude_unset=True))


@router.post(
    "/me/password",
    response_model=MessageResponse,
    summary="Change Password",
    description="Requires the current password. The owner gets a security alert by email.",
)
async def change_password(
    data: ChangePasswordRequest,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    await user_service.change_password(
        db, caller, data.old_password, data.new_password, gateway
    )
    return MessageResponse(message="Password changed")


@router.post(
    "/me/active-institution",
    response_model=AuthResponse,
    summary="Switch Active Institution",
    description="Act inside another institution the caller belongs to. Returns a fresh token.",
)
async def switch_active_institution(
    data: SwitchInstitutionRequest,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    issued = await user_service.switch_active_institution(db, caller, data.institution_id)
    return auth_response(issued)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete User",
    description="Hard delete. Superadmin, or admin of every institution the user belongs to.",
)
async def delete_user(
    user_id: int = Path(..., description="User ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(db, caller, user_id)
