"""
Role hierarchy and caller snapshots.

Roles are a fixed, totally ordered set:

    superadmin > admin > {professor, coordenador, empresa} > student

``superadmin`` is tenant-transcendent: it grants rights whichever
institution its membership row names. ``admin`` only grants rights inside
the institutions where that membership exists. The three operator roles
are peers and act on what they authored inside their own institution.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    """Institution-scoped role held through a membership."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    PROFESSOR = "professor"
    COORDENADOR = "coordenador"
    EMPRESA = "empresa"
    STUDENT = "student"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def is_global(self) -> bool:
        """Whether the grant applies regardless of institution."""
        return self is Role.SUPERADMIN

    @property
    def is_operator(self) -> bool:
        return self in OPERATOR_ROLES

    def outranks(self, other: "Role") -> bool:
        return self.rank > other.rank

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        """Parse a role name, raising ValueError for unknown names."""
        if isinstance(value, Role):
            return value
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown role: {value!r}") from None


_RANKS = {
    Role.SUPERADMIN: 3,
    Role.ADMIN: 2,
    Role.PROFESSOR: 1,
    Role.COORDENADOR: 1,
    Role.EMPRESA: 1,
    Role.STUDENT: 0,
}

OPERATOR_ROLES = frozenset({Role.PROFESSOR, Role.COORDENADOR, Role.EMPRESA})

# Roles allowed to publish jobs inside the institution that holds them
JOB_CREATOR_ROLES = OPERATOR_ROLES | {Role.ADMIN}


@dataclass(frozen=True)
class MembershipGrant:
    """One (institution, role) row of a user's memberships."""

    institution_id: int
    role: Role


@dataclass(frozen=True)
class Caller:
    """
    Snapshot of an authenticated caller.

    Built per request from a fresh read of the membership store; the
    authorization engine only ever sees this value, never the request.
    """

    user_id: int
    memberships: tuple[MembershipGrant, ...] = ()
    active_institution_id: Optional[int] = None
    _by_institution: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_institution: dict[int, Role] = {}
        for grant in self.memberships:
            if grant.institution_id in by_institution:
                raise ValueError(
                    f"User {self.user_id} has more than one role in "
                    f"institution {grant.institution_id}"
                )
            by_institution[grant.institution_id] = grant.role
        object.__setattr__(self, "memberships", tuple(self.memberships))
        object.__setattr__(self, "_by_institution", by_institution)

    @classmethod
    def build(
        cls,
        user_id: int,
        memberships: Iterable[MembershipGrant | tuple[int, "str | Role"]] = (),
        active_institution_id: Optional[int] = None,
    ) -> "Caller":
        grants = []
        for item in memberships:
            if isinstance(item, MembershipGrant):
                grants.append(item)
            else:
                institution_id, role = item
                grants.append(MembershipGrant(institution_id, Role.parse(role)))
        return cls(user_id, tuple(grants), active_institution_id)

    @property
    def is_superadmin(self) -> bool:
        return any(grant.role.is_global for grant in self.memberships)

    @property
    def is_admin_anywhere(self) -> bool:
        return any(grant.role is Role.ADMIN for grant in self.memberships)

    @property
    def highest_role(self) -> Optional[Role]:
        if not self.memberships:
            return None
        return max((grant.role for grant in self.memberships), key=lambda r: r.rank)

    @property
    def institution_ids(self) -> frozenset[int]:
        return frozenset(self._by_institution)

    def role_at(self, institution_id: Optional[int]) -> Optional[Role]:
        if institution_id is None:
            return None
        return self._by_institution.get(institution_id)

    def is_member_of(self, institution_id: Optional[int]) -> bool:
        return self.role_at(institution_id) is not None

    def is_admin_at(self, institution_id: Optional[int]) -> bool:
        return self.role_at(institution_id) is Role.ADMIN
