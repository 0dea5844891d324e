"""
CommissionDistribution model.

One row per order whose margin has been distributed. Records the company
share that never reaches the ledger and marks the order as processed.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType


class CommissionDistribution(Base):
    """Audit record of a single order's margin split."""

    __tablename__ = "commission_distributions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    buyer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    margin: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    company_share: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="Margin retained by the platform (no ledger entry)",
    )
    buyer_cashback: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    commission_pool: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    commissions_paid: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Sum of upline payouts actually credited",
    )
    payouts_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def commissions_dropped(self) -> Decimal:
        """Part of the commission pool not paid out (unqualified depths, dust)."""
        return self.commission_pool - self.commissions_paid

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionDistribution(order_id={self.order_id}, "
            f"margin={self.margin}, company_share={self.company_share})>"
        )
