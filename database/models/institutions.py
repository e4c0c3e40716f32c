"""
Institutions (tenants) and the membership relation.

A membership row grants one role to one user inside one institution; the
unique (user_id, institution_id) constraint is what keeps a user from
holding two roles in the same place.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    func,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK, enum_values
from core.authorization.roles import Role
from datetime import datetime
from enum import Enum as PyEnum


class InstitutionKind(str, PyEnum):
    UNIVERSITY = "university"
    COMPANY = "company"


class Institution(Base):
    """
    A tenant that owns jobs and members.

    Deactivated through ``is_active`` rather than deleted.
    """

    __tablename__: str = "institutions"
    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    kind: Mapped[InstitutionKind] = mapped_column(
        SQLEnum(
            InstitutionKind,
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
        default=InstitutionKind.UNIVERSITY,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Branding
    primary_color: Mapped[str | None] = mapped_column(String(20))
    logo_url: Mapped[str | None] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (Index("idx_institutions_kind_active", "kind", "is_active"),)


class Membership(Base):
    """(user, institution) -> role."""

    __tablename__: str = "institution_memberships"
    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    institution_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("institutions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=Role.STUDENT,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "institution_id", name="uq_membership_user_institution"),
        Index("idx_memberships_institution_role", "institution_id", "role"),
    )
