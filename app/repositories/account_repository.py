"""
Account repository.

Data access layer for Account model.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_by_email(self, email: str) -> Account | None:
        """
        Get account by email (case-insensitive).

        Args:
            email: Email address

        Returns:
            Account or None
        """
        if not email:
            return None
        return await self.get_by(email=email.strip().lower())

    async def get_by_referral_code(
        self, referral_code: str
    ) -> Account | None:
        """
        Get account by referral code.

        Args:
            referral_code: Referral code

        Returns:
            Account or None
        """
        if not referral_code:
            return None
        return await self.get_by(referral_code=referral_code.strip().upper())

    async def get_direct_referrals(self, account_id: int) -> list[Account]:
        """
        Get accounts directly referred by this account.

        Args:
            account_id: Referrer account ID

        Returns:
            Direct downline ordered by signup
        """
        stmt = (
            select(Account)
            .where(Account.referrer_id == account_id)
            .order_by(Account.created_at, Account.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_balance(self, account_id: int) -> Decimal | None:
        """
        Read current balance without loading the entity.

        Args:
            account_id: Account ID

        Returns:
            Balance or None if account does not exist
        """
        stmt = select(Account.balance).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def increment_balance(
        self, account_id: int, delta: Decimal, earned: bool = True
    ) -> Decimal | None:
        """
        Atomically add delta to an account balance.

        Single UPDATE with ``balance = balance + delta`` so concurrent
        credits serialize on the row lock and never lose updates. The new
        balance is read back inside the same transaction.

        Args:
            account_id: Account ID
            delta: Positive amount to add
            earned: Also add delta to total_earned

        Returns:
            Balance after the update, or None if the account does not exist
        """
        values = {"balance": Account.balance + delta}
        if earned:
            values["total_earned"] = Account.total_earned + delta

        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount == 0:
            return None

        return await self.get_balance(account_id)

    async def decrement_balance(
        self, account_id: int, amount: Decimal
    ) -> Decimal | None:
        """
        Atomically subtract amount if the balance covers it.

        Args:
            account_id: Account ID
            amount: Positive amount to subtract

        Returns:
            Balance after the update, or None if the account is missing
            or the balance is insufficient
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id, Account.balance >= amount)
            .values(balance=Account.balance - amount)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount == 0:
            return None

        return await self.get_balance(account_id)

    async def mark_threshold_reached(self, account_id: int) -> bool:
        """
        Record that the account reached the balance threshold.

        Conditional UPDATE, so only one transaction ever claims it.

        Args:
            account_id: Account ID

        Returns:
            True if this call set the mark, False if it was already set
        """
        stmt = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.threshold_reached_at.is_(None),
            )
            .values(threshold_reached_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
