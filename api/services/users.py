"""
User service functions: registration, login, profile, password change,
tenant switch and hard deletion.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from api.services.notifications import NotificationGateway
from core.authorization.decisions import DenyReason
from core.authorization.permissions import can_delete_user
from core.authorization.roles import Caller, Role
from core.authorization.tenant import check_tenant_switch
from core.config import settings
from core.errors import Conflict, Forbidden, NotFound, Unauthenticated, raise_for_decision
from core.security import create_access_token, hash_password, verify_password
from database.models.institutions import Institution, Membership
from database.models.users import User
from database.repositories import InstitutionRepository, MembershipRepository, UserRepository

logger = logging.getLogger(__name__)


@dataclass
class IssuedToken:
    access_token: str
    expires_in: int
    user: User


def _issue(user: User) -> IssuedToken:
    token = create_access_token(user.id, user.email, user.active_institution_id)
    return IssuedToken(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=user,
    )


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    institution_id: int,
) -> IssuedToken:
    """
    Sign a student up at a university.

    The new user gets a ``student`` membership there and acts in it
    straight away.
    """
    institution = await InstitutionRepository(db).get(institution_id)
    if institution is None:
        raise NotFound("Institution not found", resource="institution", resource_id=institution_id)
    if not institution.is_active:
        raise Forbidden("Institution is suspended", reason=DenyReason.INSTITUTION_INACTIVE)

    users = UserRepository(db)
    if await users.get_by_email(email) is not None:
        raise Conflict("An account with this email already exists")

    user = await users.create(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        active_institution_id=institution.id,
    )
    await MembershipRepository(db).upsert(user.id, institution.id, Role.STUDENT)
    await db.commit()

    logger.info(f"User registered: id={user.id} institution={institution.id}")
    return _issue(user)


async def login(db: AsyncSession, email: str, password: str) -> IssuedToken:
    users = UserRepository(db)
    user = await users.get_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt")
        raise Unauthenticated("Invalid email or password")

    await users.touch_login(user)
    await db.commit()

    logger.info(f"User logged in: id={user.id}")
    return _issue(user)


async def get_profile(
    db: AsyncSession, caller: Caller
) -> tuple[User, list[tuple[Membership, Institution]]]:
    user = await UserRepository(db).get(caller.user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")
    memberships = await MembershipRepository(db).list_with_institutions(user.id)
    return user, memberships


async def _current_user(users: UserRepository, caller: Caller) -> User:
    user = await users.get(caller.user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")
    return user


async def update_profile(db: AsyncSession, caller: Caller, fields: dict[str, Any]) -> User:
    users = UserRepository(db)
    user = await _current_user(users, caller)
    user = await users.update_profile(user, fields)
    await db.commit()

    logger.info(f"Profile updated: user={user.id} fields={sorted(fields)}")
    return user


async def change_password(
    db: AsyncSession,
    caller: Caller,
    old_password: str,
    new_password: str,
    gateway: NotificationGateway,
) -> None:
    """Replace the password after re-checking the current one, then alert the owner."""
    users = UserRepository(db)
    user = await _current_user(users, caller)
    if not verify_password(old_password, user.password_hash):
        logger.warning(f"Password change with wrong current password: user={user.id}")
        raise Unauthenticated("Current password is incorrect")

    await users.set_password(user, hash_password(new_password))
    await db.commit()

    logger.info(f"Password changed: user={user.id}")
    gateway.security_alert(user.email)


async def switch_active_institution(
    db: AsyncSession, caller: Caller, institution_id: int | None
) -> IssuedToken:
    """Persist a new active institution and reissue the token carrying it."""
    institution = await InstitutionRepository(db).get(institution_id)
    raise_for_decision(check_tenant_switch(caller, institution_id, institution))

    users = UserRepository(db)
    user = await users.get(caller.user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")

    await users.set_active_institution(user, institution_id)
    await db.commit()

    logger.info(f"Active institution switched: user={user.id} institution={institution_id}")
    return _issue(user)


async def delete_user(db: AsyncSession, caller: Caller, user_id: int) -> None:
    users = UserRepository(db)
    user = await users.get(user_id)
    if user is None:
        raise NotFound("User not found", resource="user", resource_id=user_id)

    target = Caller(
        user_id=user.id,
        memberships=tuple(await MembershipRepository(db).memberships_of(user.id)),
        active_institution_id=user.active_institution_id,
    )
    raise_for_decision(can_delete_user(caller, target))

    await users.delete(user)
    await db.commit()
    logger.info(f"User hard-deleted: id={user_id} by={caller.user_id}")
