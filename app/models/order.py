"""
Order models.

Orders are captured by the storefront; the commission engine only reads
them once payment is confirmed.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import OrderStatus
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.account import Account


class Order(Base):
    """Order entity."""

    __tablename__ = "orders"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Human-facing number (e.g. ORD-20261019-0001)
    order_number: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )

    # Buyer
    buyer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=OrderStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    buyer: Mapped["Account"] = relationship(
        "Account", foreign_keys=[buyer_id]
    )
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_paid(self) -> bool:
        """Whether payment has been confirmed for this order."""
        return self.status in OrderStatus.payment_confirmed()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Order(id={self.id}, number={self.order_number}, "
            f"buyer_id={self.buyer_id}, status={self.status})>"
        )


class OrderItem(Base):
    """Order line item."""

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_order_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="check_order_item_price_non_negative"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Unknown cost is estimated from price at distribution time
    unit_cost: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<OrderItem(id={self.id}, order_id={self.order_id}, "
            f"price={self.unit_price}, qty={self.quantity})>"
        )
