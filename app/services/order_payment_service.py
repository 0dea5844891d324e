"""
Order payment service.

Confirms payment for an order and then distributes its commissions. The
order is committed as paid before distribution starts, so a commission
failure never un-confirms an order; failed distributions are retried in
the background.
"""

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.database import async_session_maker
from app.repositories.order_repository import OrderRepository
from app.services.commission.distributor import (
    CommissionDistributor,
    DistributionResult,
)
from app.services.commission.schedule import CommissionSchedule
from app.services.notification.emitter import NotificationEmitter
from app.utils.exceptions import CommissionError, OrderNotPaidError, must_log


@dataclass
class PaymentConfirmation:
    """Outcome of confirming an order's payment."""

    order_id: int
    confirmed: bool
    distribution: DistributionResult | None = None
    retry_scheduled: bool = False
    error_message: str | None = None


class OrderPaymentService:
    """Payment confirmation followed by commission distribution."""

    def __init__(
        self,
        session_maker: Callable[[], AsyncSession] | None = None,
        schedule: CommissionSchedule | None = None,
    ) -> None:
        """
        Initialize order payment service.

        Args:
            session_maker: Session factory (application default); payment
                and distribution run in separate sessions
            schedule: Commission schedule passed to the distributor
        """
        self.session_maker = session_maker or async_session_maker
        self.schedule = schedule
        self.logger = logger.bind(service=self.__class__.__name__)

    async def confirm_payment(self, order_id: int) -> PaymentConfirmation:
        """
        Mark an order paid and distribute its commissions.

        Args:
            order_id: Order ID

        Returns:
            PaymentConfirmation; confirmed stays True even when the
            distribution fails

        Raises:
            CommissionError: Order not found
            OrderNotPaidError: Order cannot be paid (e.g. cancelled)
        """
        async with self.session_maker() as session:
            order_repo = OrderRepository(session)
            order = await order_repo.get_by_id(order_id)
            if order is None:
                raise CommissionError(f"Order {order_id} not found")

            if not order.is_paid:
                if not await order_repo.mark_paid(order_id):
                    raise OrderNotPaidError(order_id, order.status)
                await session.commit()
                self.logger.info(
                    "Order payment confirmed", extra={"order_id": order_id}
                )

        try:
            distribution = await self.distribute(order_id)
        except Exception as e:
            retry = must_log(e)
            self.logger.error(
                "Commission distribution failed after payment",
                extra={
                    "order_id": order_id,
                    "error": str(e),
                    "retryable": retry,
                },
                exc_info=True,
            )
            if retry:
                retry = self._schedule_retry(order_id)
            return PaymentConfirmation(
                order_id=order_id,
                confirmed=True,
                retry_scheduled=retry,
                error_message=str(e),
            )

        return PaymentConfirmation(
            order_id=order_id, confirmed=True, distribution=distribution
        )

    async def distribute(self, order_id: int) -> DistributionResult:
        """
        Run the distribution for an already paid order.

        Raises:
            CommissionError: Distribution failed
        """
        async with self.session_maker() as session:
            distributor = CommissionDistributor(
                session,
                schedule=self.schedule,
                emitter=NotificationEmitter(self.session_maker),
            )
            return await distributor.distribute_by_id(order_id)

    def _schedule_retry(self, order_id: int) -> bool:
        from jobs.tasks.commission_retry import retry_commission_distribution

        try:
            retry_commission_distribution.delay(order_id)
        except Exception as e:
            self.logger.exception(
                f"Failed to enqueue commission retry for order {order_id}: {e}"
            )
            return False
        return True
