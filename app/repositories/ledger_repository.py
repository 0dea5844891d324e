"""
Ledger repository.

Data access layer for LedgerEntry model. Append and read only.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.ledger_entry import LedgerEntry
from app.repositories.base import BaseRepository


class LedgerRepository(BaseRepository[LedgerEntry]):
    """Ledger repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger repository."""
        super().__init__(LedgerEntry, session)

    async def append(self, **data) -> LedgerEntry:
        """
        Append a ledger entry in the current transaction.

        Args:
            **data: LedgerEntry fields

        Returns:
            Flushed entry with ID assigned
        """
        entry = LedgerEntry(**data)
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_by_account(
        self, account_id: int, limit: int | None = None
    ) -> list[LedgerEntry]:
        """
        Get entries for an account, newest first.

        Args:
            account_id: Account ID
            limit: Optional max number of entries

        Returns:
            List of ledger entries
        """
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_order(self, order_id: int) -> list[LedgerEntry]:
        """
        Get all entries produced by an order.

        Args:
            order_id: Order ID

        Returns:
            Entries in creation order
        """
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.related_order_id == order_id)
            .order_by(LedgerEntry.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_by_account(self, account_id: int) -> Decimal:
        """
        Sum of signed amounts for an account.

        Args:
            account_id: Account ID

        Returns:
            Total (0 if no entries)
        """
        stmt = select(
            func.coalesce(func.sum(LedgerEntry.amount), Decimal("0"))
        ).where(LedgerEntry.account_id == account_id)
        result = await self.session.execute(stmt)
        return Decimal(result.scalar() or 0)

    async def get_balance_totals(self) -> list[tuple[int, Decimal, Decimal]]:
        """
        Balance and ledger total for every account in one query.

        Returns:
            List of (account_id, balance, ledger_total)
        """
        ledger_totals = (
            select(
                LedgerEntry.account_id.label("account_id"),
                func.sum(LedgerEntry.amount).label("total"),
            )
            .group_by(LedgerEntry.account_id)
            .subquery()
        )
        stmt = (
            select(Account.id, Account.balance, ledger_totals.c.total)
            .outerjoin(ledger_totals, ledger_totals.c.account_id == Account.id)
            .order_by(Account.id)
        )
        result = await self.session.execute(stmt)
        return [
            (row[0], Decimal(row[1]), Decimal(row[2] or 0))
            for row in result.all()
        ]
