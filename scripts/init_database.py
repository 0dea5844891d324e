#!/usr/bin/env python3
"""Create all commission and wallet tables."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine

from app.config.settings import settings
from app.models import Base
from app.utils.logging_config import setup_logging


async def init_database() -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")
    engine = create_async_engine(settings.database_url, echo=False)

    try:
        async with engine.begin() as conn:
            logger.info("Creating tables (checkfirst=True)...")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    finally:
        await engine.dispose()

    logger.success(
        f"Database tables created: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    setup_logging(log_file="")
    asyncio.run(init_database())
