from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Text,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    func,
    Index,
)
from database.engine import Base, BigIntPK
from datetime import datetime


class Notification(Base):
    """
    In-app inbox entry for a single user.

    Rows are written alongside the email fan-out and only ever flip
    ``read`` afterwards.
    """

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(500))
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_notifications_user_read", "user_id", "read"),)
