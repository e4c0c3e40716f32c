"""Saved job endpoints."""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_caller
from api.schemas.common import MessageResponse, Page, PaginationParams, pagination_params
from api.schemas.jobs import JobOut
from api.services import saved_jobs as saved_job_service
from core.authorization.roles import Caller
from database.engine import get_db

router = APIRouter(tags=["saved jobs"])


@router.post("/jobs/{job_id}/save", response_model=MessageResponse, summary="Save Job")
async def save_job(
    job_id: int = Path(..., description="Job ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await saved_job_service.save_job(db, caller, job_id)
    return MessageResponse(message="Job saved")


@router.delete(
    "/jobs/{job_id}/save",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unsave Job",
)
async def unsave_job(
    job_id: int = Path(..., description="Job ID"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    await saved_job_service.unsave_job(db, caller, job_id)


@router.get("/saved-jobs", response_model=Page[JobOut], summary="List Saved Jobs")
async def list_saved_jobs(
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await saved_job_service.list_saved_jobs(db, caller, pagination)
    return Page[JobOut].create(rows, total, pagination, JobOut)
