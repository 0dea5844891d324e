"""
Ledger audit.

Reconciles account balances against the sum of their ledger entries.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.commission_distribution_repository import (
    CommissionDistributionRepository,
)
from app.repositories.ledger_repository import LedgerRepository


@dataclass(frozen=True)
class BalanceDiscrepancy:
    """Account whose balance disagrees with its ledger."""

    account_id: int
    balance: Decimal
    ledger_total: Decimal

    @property
    def difference(self) -> Decimal:
        """Balance minus ledger total."""
        return self.balance - self.ledger_total


@dataclass
class AuditReport:
    """Result of a full ledger audit."""

    accounts_checked: int
    discrepancies: list[BalanceDiscrepancy]
    company_total: Decimal

    @property
    def is_consistent(self) -> bool:
        """True when every balance matches its ledger."""
        return not self.discrepancies


class LedgerAuditService:
    """Read-only balance reconciliation."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize audit service."""
        self.session = session
        self.ledger_repo = LedgerRepository(session)
        self.distribution_repo = CommissionDistributionRepository(session)

    async def find_discrepancies(self) -> list[BalanceDiscrepancy]:
        """
        Find accounts where balance != sum(ledger amounts).

        Returns:
            Discrepancies ordered by account ID (empty when consistent)
        """
        rows = await self.ledger_repo.get_balance_totals()
        return self._compare(rows)

    async def run(self) -> AuditReport:
        """
        Run a full audit.

        Returns:
            AuditReport including the platform's retained margin
        """
        rows = await self.ledger_repo.get_balance_totals()
        discrepancies = self._compare(rows)
        company_total = await self.distribution_repo.get_company_total()

        if discrepancies:
            logger.error(
                "Ledger audit found discrepancies",
                extra={
                    "accounts_checked": len(rows),
                    "discrepancies": len(discrepancies),
                    "account_ids": [d.account_id for d in discrepancies],
                },
            )
        else:
            logger.info(
                "Ledger audit passed",
                extra={
                    "accounts_checked": len(rows),
                    "company_total": str(company_total),
                },
            )

        return AuditReport(
            accounts_checked=len(rows),
            discrepancies=discrepancies,
            company_total=company_total,
        )

    @staticmethod
    def _compare(
        rows: list[tuple[int, Decimal, Decimal]],
    ) -> list[BalanceDiscrepancy]:
        return [
            BalanceDiscrepancy(
                account_id=account_id,
                balance=balance,
                ledger_total=ledger_total,
            )
            for account_id, balance, ledger_total in rows
            if balance != ledger_total
        ]
