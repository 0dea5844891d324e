"""
Integration tests for payment confirmation and the commission retry job.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from app.models import CommissionDistribution, OrderStatus
from app.services.commission.distributor import DistributionResult
from app.services.order_payment_service import OrderPaymentService
from app.utils.exceptions import (
    AccountNotFoundError,
    CommissionError,
    OrderNotPaidError,
    StorageError,
)
from jobs.tasks.commission_retry import (
    distribute_order,
    retry_commission_distribution,
)


async def status_of(session, order) -> str:
    await session.refresh(order)
    return order.status


class TestConfirmPayment:
    """OrderPaymentService.confirm_payment"""

    @pytest.mark.asyncio
    async def test_pending_order_paid_and_distributed(
        self, session, session_maker, make_account, make_order
    ):
        """Payment is confirmed, then the margin is distributed."""
        referrer = await make_account(session, "Referrer")
        buyer = await make_account(session, "Buyer", referrer=referrer)
        order = await make_order(session, buyer.id, status=OrderStatus.PENDING)
        await session.commit()

        confirmation = await OrderPaymentService(session_maker).confirm_payment(
            order.id
        )

        assert confirmation.confirmed
        assert confirmation.error_message is None
        assert confirmation.distribution is not None
        assert confirmation.distribution.buyer_cashback == Decimal("250.00")
        assert await status_of(session, order) == OrderStatus.PAID.value
        assert order.paid_at is not None

    @pytest.mark.asyncio
    async def test_already_paid_order_distributed_once(
        self, session, session_maker, make_account, make_order
    ):
        """Confirming twice does not pay commissions twice."""
        buyer = await make_account(session, "Buyer")
        order = await make_order(session, buyer.id)
        await session.commit()

        service = OrderPaymentService(session_maker)
        first = await service.confirm_payment(order.id)
        second = await service.confirm_payment(order.id)

        assert not first.distribution.already_processed
        assert second.distribution.already_processed
        await session.refresh(buyer)
        assert buyer.balance == Decimal("250.00")

    @pytest.mark.asyncio
    async def test_cancelled_order_rejected(
        self, session, session_maker, make_account, make_order
    ):
        """A cancelled order cannot be paid."""
        buyer = await make_account(session, "Buyer")
        order = await make_order(session, buyer.id, status=OrderStatus.CANCELLED)
        await session.commit()

        with pytest.raises(OrderNotPaidError):
            await OrderPaymentService(session_maker).confirm_payment(order.id)

        assert await status_of(session, order) == OrderStatus.CANCELLED.value

    def test_default_session_maker(self):
        """Without a factory the application session maker is used."""
        from app.config.database import async_session_maker

        assert OrderPaymentService().session_maker is async_session_maker

    @pytest.mark.asyncio
    async def test_unknown_order(self, session_maker):
        """Unknown order raises."""
        with pytest.raises(CommissionError):
            await OrderPaymentService(session_maker).confirm_payment(9999)


class TestDistributionFailure:
    """The order stays paid whatever happens to its commissions."""

    @pytest.mark.asyncio
    async def test_storage_error_schedules_retry(
        self, session, session_maker, make_account, make_order
    ):
        """Transient failure: confirmed, retry enqueued."""
        buyer = await make_account(session, "Buyer")
        order = await make_order(session, buyer.id, status=OrderStatus.PENDING)
        await session.commit()

        service = OrderPaymentService(session_maker)
        with patch.object(
            service, "distribute", side_effect=StorageError("db down")
        ), patch.object(
            service, "_schedule_retry", return_value=True
        ) as schedule_retry:
            confirmation = await service.confirm_payment(order.id)

        assert confirmation.confirmed
        assert confirmation.retry_scheduled
        assert confirmation.distribution is None
        assert "db down" in confirmation.error_message
        schedule_retry.assert_called_once_with(order.id)
        assert await status_of(session, order) == OrderStatus.PAID.value

    @pytest.mark.asyncio
    async def test_missing_buyer_not_retried(
        self, session, session_maker, make_order
    ):
        """Permanent failure: confirmed, no retry, nothing credited."""
        order = await make_order(session, 9999, status=OrderStatus.PENDING)
        await session.commit()

        service = OrderPaymentService(session_maker)
        with patch.object(service, "_schedule_retry") as schedule_retry:
            confirmation = await service.confirm_payment(order.id)

        assert confirmation.confirmed
        assert not confirmation.retry_scheduled
        assert "9999" in confirmation.error_message
        schedule_retry.assert_not_called()

        distribution = await session.scalar(
            select(CommissionDistribution).where(
                CommissionDistribution.order_id == order.id
            )
        )
        assert distribution is None

    def test_enqueue_failure_reported(self):
        """Broker outage means no retry, not an exception."""
        service = OrderPaymentService(MagicMock())

        task = MagicMock()
        task.delay.side_effect = ConnectionError("redis down")

        with patch(
            "jobs.tasks.commission_retry.retry_commission_distribution", task
        ):
            assert service._schedule_retry(42) is False

    def test_enqueue_success(self):
        """Retry is queued with the order ID."""
        service = OrderPaymentService(MagicMock())

        with patch(
            "jobs.tasks.commission_retry.retry_commission_distribution"
        ) as task:
            assert service._schedule_retry(42) is True

        task.delay.assert_called_once_with(42)


class TestRetryJob:
    """Commission retry task."""

    @pytest.mark.asyncio
    async def test_distribute_order(
        self, session, session_maker, make_account, make_order
    ):
        """Retry distributes a paid order, then becomes a no-op."""
        buyer = await make_account(session, "Buyer")
        order = await make_order(session, buyer.id)
        await session.commit()

        first = await distribute_order(order.id, session_maker=session_maker)
        second = await distribute_order(order.id, session_maker=session_maker)

        assert first.buyer_cashback == Decimal("250.00")
        assert second.already_processed

    def test_task_reports_distribution(self):
        """Successful run returns the credited total."""
        result = DistributionResult(
            order_id=7, buyer_cashback=Decimal("250.00")
        )

        with patch("jobs.tasks.commission_retry.distribute_order"), patch(
            "jobs.tasks.commission_retry.run_async", return_value=result
        ):
            outcome = retry_commission_distribution.apply(args=(7,)).get()

        assert outcome == {
            "order_id": 7,
            "status": "distributed",
            "total_credited": "250.00",
        }

    def test_task_permanent_failure(self):
        """Non-storage errors end the task without raising."""
        with patch("jobs.tasks.commission_retry.distribute_order"), patch(
            "jobs.tasks.commission_retry.run_async",
            side_effect=AccountNotFoundError(3),
        ):
            outcome = retry_commission_distribution.apply(args=(7,)).get()

        assert outcome["status"] == "failed"
        assert "Account 3 not found" in outcome["error"]
