"""
Job posting endpoints.

Listing goes through the caller's visibility; single-job reads answer 404
for jobs the caller may not see.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_optional_caller, require_caller
from api.schemas.common import Page, PaginationParams, pagination_params
from api.schemas.jobs import JobCreate, JobOut, JobQuery, JobUpdate
from api.services import jobs as job_service
from api.services.notifications import NotificationGateway, get_notification_gateway
from core.authorization.lifecycle import JobStatus
from core.authorization.roles import Caller
from core.authorization.visibility import JobFilters
from database.engine import get_db

router = APIRouter(prefix="/jobs", tags=["jobs"])


def job_query(
    search: Optional[str] = Query(None, max_length=200, description="Search by title"),
    status: Optional[JobStatus] = Query(None, description="Filter by status"),
    institution_id: Optional[int] = Query(None, description="Filter by institution"),
    sort: Literal["asc", "desc"] = Query("desc", description="Creation date order"),
) -> JobFilters:
    query = JobQuery(search=search, status=status, institution_id=institution_id, sort=sort)
    return JobFilters(**query.model_dump())


@router.get(
    "/public",
    response_model=Page[JobOut],
    summary="List Public Jobs",
    description="Public jobs in an active status. No authentication required.",
)
async def list_public_jobs(
    filters: JobFilters = Depends(job_query),
    pagination: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await job_service.list_public_jobs(db, filters, pagination)
    return Page[JobOut].create(rows, total, pagination, JobOut)


@router.get(
    "",
    response_model=Page[JobOut],
    summary="List Jobs",
    description="Jobs visible from the caller's active institution plus public jobs.",
)
async def list_jobs(
    filters: JobFilters = Depends(job_query),
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await job_service.list_jobs(db, caller, filters, pagination)
    return Page[JobOut].create(rows, total, pagination, JobOut)


@router.get("/managed", response_model=Page[JobOut], summary="List Managed Jobs")
async def list_managed_jobs(
    filters: JobFilters = Depends(job_query),
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    """Every job for admins, otherwise the caller's own postings."""
    rows, total = await job_service.list_managed_jobs(db, caller, filters, pagination)
    return Page[JobOut].create(rows, total, pagination, JobOut)


@router.get("/{job_id}", response_model=JobOut, summary="Get Job Details")
async def get_job(
    job_id: int = Path(..., description="Job ID"),
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.get_job(db, caller, job_id)


@router.post(
    "",
    response_model=JobOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
)
async def create_job(
    data: JobCreate,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    return await job_service.create_job(db, caller, data.model_dump(), gateway)


@router.patch(
    "/{job_id}",
    response_model=JobOut,
    summary="Update Job",
    description="Partial update. Changing institution_id transfers the job.",
)
async def update_job(
    data: JobUpdate,
    job_id: int = Path(..., description="Job ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    return await job_service.update_job(
        db, caller, job_id, data.model_dump(exclude_unset=True), gateway
    )


@router.delete(
    "/{job_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Job",
)
async def delete_job(
    job_id: int = Path(..., description="Job ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    await job_service.delete_job(db, caller, job_id, gateway)
