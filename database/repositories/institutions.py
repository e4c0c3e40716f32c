from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.institutions import Institution, InstitutionKind
from database.repositories.base import paginate


class InstitutionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, institution_id: Optional[int]) -> Optional[Institution]:
        if institution_id is None:
            return None
        return await self.db.get(Institution, institution_id)

    async def get_by_name(self, name: str) -> Optional[Institution]:
        result = await self.db.execute(
            select(Institution).where(func.lower(Institution.name) == name.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> Institution:
        institution = Institution(**fields)
        self.db.add(institution)
        await self.db.flush()
        await self.db.refresh(institution)
        return institution

    async def update(self, institution: Institution, changes: dict[str, Any]) -> Institution:
        for field_name, value in changes.items():
            setattr(institution, field_name, value)
        await self.db.flush()
        await self.db.refresh(institution)
        return institution

    async def list(
        self,
        kind: Optional[InstitutionKind] = None,
        active_only: bool = False,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Institution], int]:
        query = select(Institution).order_by(Institution.name)
        if kind is not None:
            query = query.where(Institution.kind == kind)
        if active_only:
            query = query.where(Institution.is_active.is_(True))
        if search:
            query = query.where(Institution.name.ilike(f"%{search.strip()}%"))
        return await paginate(self.db, query, page, limit)
