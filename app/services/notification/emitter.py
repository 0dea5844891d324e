"""
Notification emitter.

Stores notifications collected during a distribution. Runs only after the
distribution has committed, each notification in its own short session,
and never raises: a lost notification does not affect balances.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import NotificationKind
from app.repositories.notification_repository import NotificationRepository
from app.utils.exceptions import NotificationError, is_safe_to_ignore


@dataclass
class PendingNotification:
    """Notification waiting for the distribution to commit."""

    account_id: int
    kind: NotificationKind
    message: str
    payload: dict[str, Any] = field(default_factory=dict)


class NotificationEmitter:
    """Best-effort notification sink."""

    def __init__(self, session_maker: Callable[[], AsyncSession]) -> None:
        """
        Initialize emitter.

        Args:
            session_maker: Factory for sessions independent of the
                distribution's session
        """
        self.session_maker = session_maker

    async def emit_all(self, notifications: Iterable[PendingNotification]) -> int:
        """
        Store notifications one by one.

        Args:
            notifications: Notifications to store

        Returns:
            Number stored successfully
        """
        sent = 0
        for notification in notifications:
            try:
                await self.emit(notification)
                sent += 1
            except Exception as e:
                if is_safe_to_ignore(e):
                    logger.warning(
                        "Notification dropped",
                        extra={
                            "account_id": notification.account_id,
                            "kind": notification.kind.value,
                            "error": str(e),
                        },
                    )
                else:
                    logger.exception(
                        f"Unexpected error emitting notification: {e}"
                    )
        return sent

    async def emit(self, notification: PendingNotification) -> None:
        """
        Store a single notification.

        Raises:
            NotificationError: Storage failed
        """
        try:
            async with self.session_maker() as session:
                repo = NotificationRepository(session)
                await repo.create(
                    account_id=notification.account_id,
                    kind=notification.kind.value,
                    message=notification.message,
                    payload=notification.payload,
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise NotificationError(
                f"Failed to store {notification.kind.value} notification "
                f"for account {notification.account_id}: {e}"
            ) from e
