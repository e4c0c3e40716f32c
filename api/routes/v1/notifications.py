"""
In-app notification endpoints. Every route acts on the caller's own inbox.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_caller
from api.schemas.notifications import NotificationInbox, NotificationOut
from api.services import inbox as inbox_service
from core.authorization.roles import Caller
from database.engine import get_db

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationInbox,
    summary="List Notifications",
    description="The 20 most recent notifications and the total unread count.",
)
async def list_notifications(
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, unread = await inbox_service.list_notifications(db, caller)
    return NotificationInbox(
        data=[NotificationOut.model_validate(row) for row in rows],
        unread_count=unread,
    )


@router.post(
    "/read-all",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark All Notifications Read",
)
async def mark_all_read(
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await inbox_service.mark_all_read(db, caller)


@router.post(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark Notification Read",
)
async def mark_read(
    notification_id: int = Path(..., description="Notification ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await inbox_service.mark_read(db, caller, notification_id)
