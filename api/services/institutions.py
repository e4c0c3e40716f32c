"""
Institution service functions.

Creating, listing and suspending institutions is reserved to superadmins;
an institution admin edits only the settings of the institution they are
acting in.
"""

import logging
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from core.authorization.permissions import can_administer_institutions, can_manage_institution
from core.authorization.roles import Caller
from core.errors import Conflict, NotFound, raise_for_decision
from database.models.institutions import Institution, InstitutionKind
from database.repositories import InstitutionRepository

logger = logging.getLogger(__name__)


async def _load(repo: InstitutionRepository, institution_id: int) -> Institution:
    institution = await repo.get(institution_id)
    if institution is None:
        raise NotFound(
            "Institution not found", resource="institution", resource_id=institution_id
        )
    return institution


async def _ensure_name_free(
    repo: InstitutionRepository, name: str, exclude_id: Optional[int] = None
) -> None:
    existing = await repo.get_by_name(name)
    if existing is not None and existing.id != exclude_id:
        raise Conflict(f"An institution named '{name}' already exists")


async def list_public_institutions(
    db: AsyncSession,
    pagination: PaginationParams,
    search: Optional[str] = None,
) -> tuple[Sequence[Institution], int]:
    """Active universities, for the registration form."""
    return await InstitutionRepository(db).list(
        kind=InstitutionKind.UNIVERSITY,
        active_only=True,
        search=search,
        page=pagination.page,
        limit=pagination.limit,
    )


async def list_institutions(
    db: AsyncSession,
    caller: Caller,
    pagination: PaginationParams,
    kind: Optional[InstitutionKind] = None,
    search: Optional[str] = None,
) -> tuple[Sequence[Institution], int]:
    raise_for_decision(can_administer_institutions(caller))
    return await InstitutionRepository(db).list(
        kind=kind, search=search, page=pagination.page, limit=pagination.limit
    )


async def get_institution(db: AsyncSession, caller: Caller, institution_id: int) -> Institution:
    raise_for_decision(can_administer_institutions(caller))
    return await _load(InstitutionRepository(db), institution_id)


async def create_institution(db: AsyncSession, caller: Caller, fields: dict[str, Any]) -> Institution:
    raise_for_decision(can_administer_institutions(caller))
    repo = InstitutionRepository(db)
    await _ensure_name_free(repo, fields["name"])

    institution = await repo.create(**fields)
    await db.commit()
    logger.info(f"Institution created: id={institution.id} by={caller.user_id}")
    return institution


async def update_institution(
    db: AsyncSession,
    caller: Caller,
    institution_id: int,
    changes: dict[str, Any],
) -> Institution:
    raise_for_decision(can_manage_institution(caller, institution_id))
    repo = InstitutionRepository(db)
    institution = await _load(repo, institution_id)

    changes = {key: value for key, value in changes.items() if value is not None or key != "name"}
    if changes.get("name"):
        await _ensure_name_free(repo, changes["name"], exclude_id=institution.id)

    institution = await repo.update(institution, changes)
    await db.commit()
    return institution


async def set_institution_active(
    db: AsyncSession,
    caller: Caller,
    institution_id: int,
    active: bool,
) -> Institution:
    """Suspend or reinstate an institution; its members lose or regain access."""
    raise_for_decision(can_administer_institutions(caller))
    repo = InstitutionRepository(db)
    institution = await _load(repo, institution_id)

    institution = await repo.update(institution, {"is_active": active})
    await db.commit()
    logger.info(
        f"Institution {'reactivated' if active else 'deactivated'}: "
        f"id={institution.id} by={caller.user_id}"
    )
    return institution
