"""
Model enumerations.

Stored as plain strings (``.value``) in the database.
"""

from enum import StrEnum


class LedgerEntryKind(StrEnum):
    """Kind of balance-affecting event."""

    CASHBACK = "cashback"
    COMMISSION = "commission"
    DEBIT = "debit"
    WITHDRAWAL = "withdrawal"
    BONUS = "bonus"


class LedgerEntryStatus(StrEnum):
    """Ledger entry status."""

    COMPLETED = "completed"
    PENDING = "pending"


class NotificationKind(StrEnum):
    """Kind of advisory notification."""

    CASHBACK = "cashback"
    COMMISSION = "commission"
    THRESHOLD_REACHED = "threshold_reached"


class OrderStatus(StrEnum):
    """Order lifecycle status."""

    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def payment_confirmed(cls) -> frozenset["OrderStatus"]:
        """Statuses that imply the order has been paid."""
        return frozenset({cls.PAID, cls.SHIPPED, cls.DELIVERED})
