"""
Account model.

Represents a registered customer with a spendable wallet balance.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.ledger_entry import LedgerEntry
    from app.models.notification import Notification


class Account(Base):
    """Account model - customers who buy, refer and earn."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "balance >= 0", name="check_account_balance_non_negative"
        ),
        CheckConstraint(
            "total_earned >= 0",
            name="check_account_total_earned_non_negative"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )

    # Wallet
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Lifetime cashback, commission and bonus credits",
    )
    threshold_reached_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set once, by the credit that first reached the balance threshold",
    )

    # Referral (weak reference, never owns the referrer)
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    referrer: Mapped[Optional["Account"]] = relationship(
        "Account",
        remote_side=[id],
        back_populates="direct_referrals",
        foreign_keys=[referrer_id],
    )
    direct_referrals: Mapped[list["Account"]] = relationship(
        "Account",
        back_populates="referrer",
        foreign_keys=[referrer_id]
    )
    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        "LedgerEntry",
        back_populates="account",
        foreign_keys="LedgerEntry.account_id",
    )
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification",
        back_populates="account",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, email={self.email}, "
            f"balance={self.balance})>"
        )
