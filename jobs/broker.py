"""
Task queue broker configuration.

Redis-backed Celery application for the commission retry queue.
"""

from celery import Celery
from loguru import logger

from app.config.settings import settings


def build_redis_url() -> str:
    """Broker URL from the redis settings."""
    auth = f":{settings.redis_password}@" if settings.redis_password else ""
    return (
        f"redis://{auth}{settings.redis_host}:{settings.redis_port}"
        f"/{settings.redis_db}"
    )


celery_app = Celery(
    "commissions",
    broker=build_redis_url(),
    include=["jobs.tasks.commission_retry"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # Redeliver a distribution if the worker dies mid-task
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
)

logger.info(
    f"Celery broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
