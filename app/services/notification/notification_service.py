"""
Notification service.

Reading and acknowledging an account's notifications.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.notification_repository import NotificationRepository
from app.services.base_service import BaseService


class NotificationService(BaseService):
    """Notification inbox for accounts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize notification service."""
        super().__init__(session)
        self.notification_repo = NotificationRepository(session)

    async def list_notifications(
        self, account_id: int, limit: int = 50, unread_only: bool = False
    ) -> list[Notification]:
        """
        Get notifications, newest first.

        Args:
            account_id: Account ID
            limit: Max notifications
            unread_only: Only unread ones

        Returns:
            List of notifications
        """
        return await self.notification_repo.get_for_account(
            account_id, limit=limit, unread_only=unread_only
        )

    async def unread_count(self, account_id: int) -> int:
        """Count unread notifications."""
        return await self.notification_repo.count_unread(account_id)

    async def mark_read(
        self, account_id: int, notification_id: int | None = None
    ) -> int:
        """
        Mark one notification, or all of them, as read.

        Args:
            account_id: Owner account ID
            notification_id: Notification to mark, None for all

        Returns:
            Number of notifications marked
        """
        updated = await self.notification_repo.mark_read(
            account_id, notification_id
        )
        await self.commit()

        self.logger.debug(
            "Notifications marked read",
            extra={"account_id": account_id, "updated": updated},
        )
        return updated
