"""
Referral repository.

Data access layer for Referral model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.referral import Referral
from app.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_upline_ids(
        self, referral_user_id: int, max_level: int | None = None
    ) -> list[int]:
        """
        Get ancestor account IDs ordered nearest first.

        Args:
            referral_user_id: Descendant account ID
            max_level: Optional depth cap

        Returns:
            Ancestor IDs, index 0 is the direct referrer
        """
        stmt = (
            select(Referral.referrer_id)
            .where(Referral.referral_id == referral_user_id)
            .order_by(Referral.level)
        )
        if max_level is not None:
            stmt = stmt.where(Referral.level <= max_level)

        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]

    async def get_level_counts(
        self, referrer_id: int
    ) -> dict[int, int]:
        """
        Get downline counts for every level in a single query.

        Args:
            referrer_id: Referrer account ID

        Returns:
            Dict mapping level to count, only levels that have members
        """
        stmt = (
            select(
                Referral.level,
                func.count(Referral.id).label("count")
            )
            .where(Referral.referrer_id == referrer_id)
            .group_by(Referral.level)
            .order_by(Referral.level)
        )

        result = await self.session.execute(stmt)
        return {row.level: row.count for row in result.all()}
