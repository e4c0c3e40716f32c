from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.notifications import Notification


class NotificationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self, user_id: int, title: str, message: str, link: Optional[str] = None
    ) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message, link=link)
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def recent(self, user_id: int, limit: int = 20) -> Sequence[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def unread_count(self, user_id: int) -> int:
        return await self.db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
        )

    async def mark_read(self, user_id: int, notification_id: int) -> bool:
        """False when the notification does not exist or belongs to someone else."""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(read=True)
        )
        await self.db.flush()
        return result.rowcount > 0

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        await self.db.flush()
        return result.rowcount
