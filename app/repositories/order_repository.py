"""
Order repository.

Read access to orders plus the payment-confirmed transition.
"""

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.enums import OrderStatus
from app.models.order import Order
from app.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Order repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize order repository."""
        super().__init__(Order, session)

    async def get_with_items(self, order_id: int) -> Order | None:
        """
        Get order with line items loaded.

        Args:
            order_id: Order ID

        Returns:
            Order or None
        """
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_paid(self, order_id: int) -> bool:
        """
        Move a pending order to paid.

        Args:
            order_id: Order ID

        Returns:
            True if the order was pending and is now paid
        """
        stmt = (
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == OrderStatus.PENDING.value,
            )
            .values(status=OrderStatus.PAID.value, paid_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
