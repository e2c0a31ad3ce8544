"""
Notification Service
Records in-app notifications. Writes join the caller's transaction so a
notification only exists if the change that caused it was committed.
"""

from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import run_in_transaction
from app.core.exceptions import NotFoundError
from app.models.notification import Notification


class NotificationService:
    """Service for user notifications"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def notify(self, user_id: int, title: str, message: str) -> Notification:
        """Queue a notification on the current session (no commit)"""
        notification = Notification(user_id=user_id, title=title, message=message)
        self.db.add(notification)
        return notification

    async def list_for_user(self, user_id: int) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(result.scalars().all())

    async def mark_read(self, notification_id: int, user_id: int) -> Notification:
        """Mark one of the caller's notifications as read"""

        async def work() -> Notification:
            result = await self.db.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
            )
            notification = result.scalar_one_or_none()
            if not notification:
                raise NotFoundError("Notification", notification_id)
            notification.is_read = True
            return notification

        return await run_in_transaction(self.db, work, operation="mark_notification_read")
