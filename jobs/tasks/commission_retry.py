"""
Commission retry task.

Re-runs the distribution for an order whose first attempt failed after
payment was confirmed. Distribution is idempotent, so retrying an order
that did go through is a no-op.
"""

from collections.abc import Callable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.services.commission.distributor import (
    CommissionDistributor,
    DistributionResult,
)
from app.services.notification.emitter import NotificationEmitter
from app.utils.exceptions import CommissionError, StorageError
from jobs.async_runner import run_async
from jobs.broker import celery_app
from jobs.utils.database import task_session_maker


@celery_app.task(
    name="commissions.retry_distribution",
    bind=True,
    autoretry_for=(StorageError,),
    retry_backoff=5,  # 5s, 10s, 20s, ...
    retry_backoff_max=600,
    retry_jitter=True,
    max_retries=settings.commission_retry_max_attempts,
)
def retry_commission_distribution(self, order_id: int) -> dict:
    """
    Retry commission distribution for a paid order.

    Storage errors are retried with exponential backoff; other commission
    errors (e.g. missing buyer) cannot succeed on retry and are logged.
    """
    logger.info(
        "Retrying commission distribution",
        extra={"order_id": order_id, "attempt": self.request.retries + 1},
    )

    try:
        result = run_async(distribute_order(order_id))
    except StorageError:
        logger.warning(
            "Commission retry hit a storage error, will retry",
            extra={"order_id": order_id, "attempt": self.request.retries + 1},
        )
        raise
    except CommissionError as e:
        logger.error(
            "Commission retry failed permanently",
            extra={"order_id": order_id, "error": str(e)},
        )
        return {"order_id": order_id, "status": "failed", "error": str(e)}

    status = "already_processed" if result.already_processed else "distributed"
    logger.info(
        "Commission retry complete",
        extra={
            "order_id": order_id,
            "status": status,
            "total_credited": str(result.total_credited),
        },
    )
    return {
        "order_id": order_id,
        "status": status,
        "total_credited": str(result.total_credited),
    }


async def distribute_order(
    order_id: int,
    session_maker: Callable[[], AsyncSession] = task_session_maker,
) -> DistributionResult:
    """
    Distribute one order in a fresh task session.

    Args:
        order_id: Paid order ID
        session_maker: Session factory (task engine by default)

    Returns:
        DistributionResult
    """
    async with session_maker() as session:
        distributor = CommissionDistributor(
            session, emitter=NotificationEmitter(session_maker)
        )
        return await distributor.distribute_by_id(order_id)
