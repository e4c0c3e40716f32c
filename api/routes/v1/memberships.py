"""Role assignment endpoints."""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_caller
from api.schemas.institutions import MembershipAssign, MembershipRecord
from api.services import memberships as membership_service
from core.authorization.roles import Caller
from database.engine import get_db

router = APIRouter(prefix="/memberships", tags=["memberships"])


@router.put(
    "",
    response_model=MembershipRecord,
    summary="Assign Role",
    description="Create or replace a user's role in an institution.",
)
async def assign_role(
    data: MembershipAssign,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await membership_service.assign_role(
        db, caller, data.user_id, data.institution_id, data.role
    )


@router.delete(
    "/{membership_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Membership",
)
async def remove_membership(
    membership_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await membership_service.remove_membership(db, caller, membership_id)
