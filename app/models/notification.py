"""
Notification model.

Advisory messages about payouts and balance thresholds. Losing one never
affects financial state.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.account import Account


class Notification(Base):
    """Notification entity."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_account_read", "account_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=dict, nullable=False
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    account: Mapped["Account"] = relationship(
        "Account", back_populates="notifications"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Notification(id={self.id}, account_id={self.account_id}, "
            f"kind={self.kind}, read={self.is_read})>"
        )
