"""
LedgerEntry model.

Append-only record of balance-affecting events. Rows are never updated or
deleted; the sum of an account's entries equals its balance.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import LedgerEntryStatus
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.account import Account


class LedgerEntry(Base):
    """
    LedgerEntry entity.

    Attributes:
        id: Primary key
        account_id: Account whose balance changed
        amount: Signed amount (credits positive, debits negative)
        kind: cashback, commission, debit, withdrawal or bonus
        description: Human-readable description
        related_order_id: Order that produced the entry (optional)
        related_account_id: Account that triggered it, e.g. the buyer
            behind a commission (optional)
        balance_after: Account balance right after this entry
        status: Normally "completed"
        created_at: Creation timestamp
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        # One entry of a kind per account per order: a retried
        # distribution can never pay twice
        UniqueConstraint(
            "account_id",
            "related_order_id",
            "kind",
            name="uq_ledger_entries_account_order_kind",
        ),
        Index("idx_ledger_entries_account_created", "account_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    kind: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    related_order_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    related_account_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )

    balance_after: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=LedgerEntryStatus.COMPLETED.value,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    account: Mapped["Account"] = relationship(
        "Account",
        back_populates="ledger_entries",
        foreign_keys=[account_id],
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LedgerEntry(id={self.id}, account_id={self.account_id}, "
            f"kind={self.kind}, amount={self.amount})>"
        )
