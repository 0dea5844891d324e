"""
Commission distribution repository.

Data access layer for CommissionDistribution model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission_distribution import CommissionDistribution
from app.repositories.base import BaseRepository


class CommissionDistributionRepository(BaseRepository[CommissionDistribution]):
    """Commission distribution repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission distribution repository."""
        super().__init__(CommissionDistribution, session)

    async def get_by_order(self, order_id: int) -> CommissionDistribution | None:
        """
        Get the distribution record for an order.

        Args:
            order_id: Order ID

        Returns:
            Distribution or None if the order was never distributed
        """
        return await self.get_by(order_id=order_id)

    async def get_company_total(self) -> Decimal:
        """
        Total margin retained by the platform across all orders.

        Returns:
            Sum of company shares
        """
        stmt = select(
            func.coalesce(
                func.sum(CommissionDistribution.company_share), Decimal("0")
            )
        )
        result = await self.session.execute(stmt)
        return Decimal(result.scalar() or 0)
