"""
Institution endpoints.

The public listing feeds the registration form; everything else is
superadmin territory except editing the caller's own institution.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_caller
from api.schemas.common import Page, PaginationParams, pagination_params
from api.schemas.institutions import InstitutionCreate, InstitutionOut, InstitutionUpdate
from api.services import institutions as institution_service
from core.authorization.roles import Caller
from database.engine import get_db
from database.models.institutions import InstitutionKind

router = APIRouter(prefix="/institutions", tags=["institutions"])


@router.get("/public", response_model=Page[InstitutionOut], summary="List Universities")
async def list_public_institutions(
    search: Optional[str] = Query(None, max_length=200),
    pagination: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await institution_service.list_public_institutions(db, pagination, search)
    return Page[InstitutionOut].create(rows, total, pagination, InstitutionOut)


@router.get("", response_model=Page[InstitutionOut], summary="List Institutions")
async def list_institutions(
    kind: Optional[InstitutionKind] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    pagination: PaginationParams = Depends(pagination_params),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await institution_service.list_institutions(db, caller, pagination, kind, search)
    return Page[InstitutionOut].create(rows, total, pagination, InstitutionOut)


@router.post(
    "",
    response_model=InstitutionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Institution",
)
async def create_institution(
    data: InstitutionCreate,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await institution_service.create_institution(db, caller, data.model_dump())


@router.get("/{institution_id}", response_model=InstitutionOut, summary="Get Institution")
async def get_institution(
    institution_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await institution_service.get_institution(db, caller, institution_id)


@router.patch("/{institution_id}", response_model=InstitutionOut, summary="Update Institution")
async def update_institution(
    data: InstitutionUpdate,
    institution_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    """Edit name and branding. Institution admins edit only their active institution."""
    return await institution_service.update_institution(
        db, caller, institution_id, data.model_dump(exclude_unset=True)
    )


@router.post(
    "/{institution_id}/deactivate",
    response_model=InstitutionOut,
    summary="Deactivate Institution",
)
async def deactivate_institution(
    institution_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await institution_service.set_institution_active(db, caller, institution_id, False)


@router.post(
    "/{institution_id}/reactivate",
    response_model=InstitutionOut,
    summary="Reactivate Institution",
)
async def reactivate_institution(
    institution_id: int = Path(...),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await institution_service.set_institution_active(db, caller, institution_id, True)
