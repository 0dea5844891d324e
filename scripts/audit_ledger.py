#!/usr/bin/env python3
"""
Ledger audit.

Checks that every account balance equals the sum of its ledger entries
and reports the margin retained by the platform. Exits with status 1 when
any balance disagrees with its ledger.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config.settings import settings
from app.services.wallet.audit import AuditReport, LedgerAuditService
from app.utils.formatters import format_money
from app.utils.logging_config import setup_logging


async def audit_ledger() -> AuditReport:
    """Run the audit against the configured database."""
    engine = create_async_engine(
        settings.database_url,
        echo=False,
        poolclass=NullPool,
    )
    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    try:
        async with session_maker() as session:
            report = await LedgerAuditService(session).run()
    finally:
        await engine.dispose()

    logger.info(f"Accounts checked: {report.accounts_checked}")
    logger.info(f"Platform margin retained: {format_money(report.company_total)}")

    for discrepancy in report.discrepancies:
        logger.error(
            f"Account {discrepancy.account_id}: balance {discrepancy.balance}, "
            f"ledger {discrepancy.ledger_total}, "
            f"difference {discrepancy.difference}"
        )

    if report.is_consistent:
        logger.success("All balances match their ledger")

    return report


if __name__ == "__main__":
    setup_logging(log_file="")
    result = asyncio.run(audit_ledger())
    sys.exit(0 if result.is_consistent else 1)
