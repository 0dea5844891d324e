"""
Notification service module.

Structure:
- emitter.py: post-commit, best-effort storage of payout notifications
- messages.py: message templates
- notification_service.py: listing, unread count, mark read

Usage:
    from app.services.notification import NotificationService

    service = NotificationService(session)
    unread = await service.unread_count(account_id)
    await service.mark_read(account_id)
"""

from app.services.notification.emitter import (
    NotificationEmitter,
    PendingNotification,
)
from app.services.notification.notification_service import NotificationService


__all__ = [
    "NotificationEmitter",
    "NotificationService",
    "PendingNotification",
]
