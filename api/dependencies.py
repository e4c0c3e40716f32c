"""FastAPI dependencies for dependency injection."""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization.roles import Caller
from core.errors import Unauthenticated
from core.middleware.authentication import get_identity
from database.engine import get_db
from database.repositories import MembershipRepository, UserRepository

logger = logging.getLogger(__name__)


async def get_optional_caller(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[Caller]:
    """
    Build the caller snapshot for this request, or None when anonymous.

    Memberships and the active institution are re-read from the database
    on every request; the token only asserts who the caller is.
    """
    identity = get_identity(request)
    if identity is None:
        return None

    user = await UserRepository(db).get(identity.user_id)
    if user is None:
        logger.warning(f"Token presented for missing user {identity.user_id}")
        raise Unauthenticated("User no longer exists")

    memberships = await MembershipRepository(db).memberships_of(user.id)
    return Caller(
        user_id=user.id,
        memberships=tuple(memberships),
        active_institution_id=user.active_institution_id,
    )


async def require_caller(
    caller: Optional[Caller] = Depends(get_optional_caller),
) -> Caller:
    """Require an authenticated caller."""
    if caller is None:
        raise Unauthenticated()
    return caller
