"""
Application endpoints.

Provides applying to a job, the caller's own applications, the candidates
of a job and status management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_caller
from api.schemas.applications import ApplicationOut, ApplicationStatusUpdate
from api.schemas.common import Page, PaginationParams, pagination_params
from api.services import applications as application_service
from api.services.notifications import NotificationGateway, get_notification_gateway
from core.authorization.roles import Caller
from database.engine import get_db
from database.models.applications import ApplicationStatus

router = APIRouter(tags=["applications"])


@router.post(
    "/jobs/{job_id}/applications",
    response_model=ApplicationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to Job",
)
async def apply_to_job(
    job_id: int = Path(..., description="Job ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.apply_to_job(db, caller, job_id)


@router.get(
    "/jobs/{job_id}/applications",
    response_model=Page[ApplicationOut],
    summary="List Job Candidates",
)
async def list_job_applications(
    job_id: int = Path(..., description="Job ID"),
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await application_service.list_job_applications(db, caller, job_id, pagination)
    return Page[ApplicationOut].create(rows, total, pagination, ApplicationOut)


@router.get("/applications/mine", response_model=Page[ApplicationOut], summary="My Applications")
async def list_my_applications(
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await application_service.list_my_applications(db, caller, pagination)
    return Page[ApplicationOut].create(rows, total, pagination, ApplicationOut)


@router.get(
    "/applications/managed",
    response_model=Page[ApplicationOut],
    summary="Managed Applications",
    description="Applications to jobs the caller administers or authored.",
)
async def list_managed_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await application_service.list_managed_applications(
        db, caller, pagination, status_filter
    )
    return Page[ApplicationOut].create(rows, total, pagination, ApplicationOut)


@router.patch(
    "/applications/{application_id}/status",
    response_model=ApplicationOut,
    summary="Update Application Status",
)
async def update_application_status(
    data: ApplicationStatusUpdate,
    application_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    return await application_service.update_application_status(
        db, caller, application_id, data.status, gateway
    )


@router.delete(
    "/applications/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Withdraw Application",
)
async def cancel_application(
    application_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await application_service.cancel_application(db, caller, application_id)
