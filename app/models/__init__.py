"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.account import Account
from app.models.base import Base
from app.models.commission_distribution import CommissionDistribution
from app.models.enums import (
    LedgerEntryKind,
    LedgerEntryStatus,
    NotificationKind,
    OrderStatus,
)
from app.models.ledger_entry import LedgerEntry
from app.models.notification import Notification
from app.models.order import Order, OrderItem
from app.models.referral import Referral

__all__ = [
    # Base
    "Base",
    # Enums
    "LedgerEntryKind",
    "LedgerEntryStatus",
    "NotificationKind",
    "OrderStatus",
    # Core Models
    "Account",
    "Referral",
    "Order",
    "OrderItem",
    # Wallet
    "LedgerEntry",
    "CommissionDistribution",
    # Notifications
    "Notification",
]
