"""
Referral model.

One row per (ancestor, descendant, level). The rows for a descendant form
its upline snapshot, written once at registration.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.account import Account


class Referral(Base):
    """Referral model - multi-level referral relationships."""

    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint(
            "referral_id", "level", name="uq_referrals_referral_level"
        ),
        UniqueConstraint(
            "referrer_id", "referral_id", name="uq_referrals_pair"
        ),
        Index("idx_referrals_referrer_level", "referrer_id", "level"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Ancestor (who earns)
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Descendant (whose purchases generate commissions)
    referral_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Depth in the descendant's upline (1 = direct referrer, max 100)
    level: Mapped[int] = mapped_column(
        Integer, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    referrer: Mapped["Account"] = relationship(
        "Account",
        foreign_keys=[referrer_id],
    )
    referral: Mapped["Account"] = relationship(
        "Account",
        foreign_keys=[referral_id],
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, referrer_id={self.referrer_id}, "
            f"referral_id={self.referral_id}, level={self.level})>"
        )
