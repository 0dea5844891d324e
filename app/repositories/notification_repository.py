"""
Notification repository.

Data access layer for Notification model.
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Notification repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize notification repository."""
        super().__init__(Notification, session)

    async def get_for_account(
        self, account_id: int, limit: int = 50, unread_only: bool = False
    ) -> list[Notification]:
        """
        Get notifications for an account, newest first.

        Args:
            account_id: Account ID
            limit: Max number of notifications
            unread_only: Skip already read notifications

        Returns:
            List of notifications
        """
        stmt = select(Notification).where(Notification.account_id == account_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, account_id: int) -> int:
        """
        Count unread notifications.

        Args:
            account_id: Account ID

        Returns:
            Unread count
        """
        stmt = select(func.count(Notification.id)).where(
            Notification.account_id == account_id,
            Notification.is_read.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def mark_read(
        self, account_id: int, notification_id: int | None = None
    ) -> int:
        """
        Mark one or all notifications of an account as read.

        Args:
            account_id: Owner account ID
            notification_id: Single notification, or None for all

        Returns:
            Number of notifications updated
        """
        stmt = (
            update(Notification)
            .where(
                Notification.account_id == account_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        if notification_id is not None:
            stmt = stmt.where(Notification.id == notification_id)

        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
