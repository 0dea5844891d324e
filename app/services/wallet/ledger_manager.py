"""
Ledger manager.

Applies credits and debits as one balance update plus one ledger entry in
the caller's session. Never commits: the caller owns the transaction, so
several mutations can be grouped into one atomic unit.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import LedgerEntryKind
from app.models.ledger_entry import LedgerEntry
from app.repositories.account_repository import AccountRepository
from app.repositories.ledger_repository import LedgerRepository
from app.utils.exceptions import (
    AccountNotFoundError,
    DuplicateLedgerEntryError,
    InsufficientBalanceError,
)


CREDIT_KINDS = frozenset(
    {LedgerEntryKind.CASHBACK, LedgerEntryKind.COMMISSION, LedgerEntryKind.BONUS}
)
DEBIT_KINDS = frozenset({LedgerEntryKind.DEBIT, LedgerEntryKind.WITHDRAWAL})


@dataclass
class CreditResult:
    """Outcome of a single credit."""

    entry: LedgerEntry
    balance_before: Decimal
    balance_after: Decimal

    def crossed(self, threshold: Decimal) -> bool:
        """
        Check whether this credit moved the balance across a threshold.

        Args:
            threshold: Balance level

        Returns:
            True if balance went from below threshold to at or above it
        """
        return self.balance_before < threshold <= self.balance_after


class LedgerManager:
    """Balance and ledger writer."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger manager.

        Args:
            session: Session holding the caller's transaction
        """
        self.session = session
        self.account_repo = AccountRepository(session)
        self.ledger_repo = LedgerRepository(session)

    async def apply_credit(
        self,
        account_id: int,
        amount: Decimal,
        kind: LedgerEntryKind,
        description: str,
        related_order_id: int | None = None,
        related_account_id: int | None = None,
    ) -> CreditResult:
        """
        Credit an account and append the matching ledger entry.

        The balance is incremented atomically in the database, so
        concurrent credits to the same account serialize on its row lock.

        Args:
            account_id: Account to credit
            amount: Positive amount
            kind: cashback, commission or bonus
            description: Ledger description
            related_order_id: Order that produced the credit
            related_account_id: Account that triggered the credit

        Returns:
            CreditResult with the entry and the balance around it

        Raises:
            ValueError: Non-positive amount or non-credit kind
            AccountNotFoundError: Account does not exist (nothing written)
        """
        if amount <= 0:
            raise ValueError(f"Credit amount must be positive, got {amount}")
        if kind not in CREDIT_KINDS:
            raise ValueError(f"{kind} is not a credit kind")

        balance_after = await self.account_repo.increment_balance(
            account_id, amount
        )
        if balance_after is None:
            raise AccountNotFoundError(account_id)

        entry = await self.ledger_repo.append(
            account_id=account_id,
            amount=amount,
            kind=kind.value,
            description=description,
            related_order_id=related_order_id,
            related_account_id=related_account_id,
            balance_after=balance_after,
        )

        logger.debug(
            "Ledger credit applied",
            extra={
                "account_id": account_id,
                "kind": kind.value,
                "amount": str(amount),
                "balance_after": str(balance_after),
                "order_id": related_order_id,
            },
        )

        return CreditResult(
            entry=entry,
            balance_before=balance_after - amount,
            balance_after=balance_after,
        )

    async def apply_debit(
        self,
        account_id: int,
        amount: Decimal,
        description: str,
        kind: LedgerEntryKind = LedgerEntryKind.DEBIT,
        related_order_id: int | None = None,
    ) -> LedgerEntry:
        """
        Debit an account and append a negative ledger entry.

        Args:
            account_id: Account to debit
            amount: Positive amount to take
            description: Ledger description
            kind: debit or withdrawal
            related_order_id: Order paid with the balance, if any

        Returns:
            Created ledger entry (amount is negative)

        Raises:
            ValueError: Non-positive amount or non-debit kind
            AccountNotFoundError: Account does not exist
            InsufficientBalanceError: Balance does not cover amount
            DuplicateLedgerEntryError: Same kind of debit already recorded
                for this order
        """
        if amount <= 0:
            raise ValueError(f"Debit amount must be positive, got {amount}")
        if kind not in DEBIT_KINDS:
            raise ValueError(f"{kind} is not a debit kind")

        balance_after = await self.account_repo.decrement_balance(
            account_id, amount
        )
        if balance_after is None:
            available = await self.account_repo.get_balance(account_id)
            if available is None:
                raise AccountNotFoundError(account_id)
            raise InsufficientBalanceError(account_id, available, amount)

        try:
            entry = await self.ledger_repo.append(
                account_id=account_id,
                amount=-amount,
                kind=kind.value,
                description=description,
                related_order_id=related_order_id,
                balance_after=balance_after,
            )
        except IntegrityError as e:
            if related_order_id is None:
                raise
            raise DuplicateLedgerEntryError(
                account_id, related_order_id, kind.value
            ) from e

        logger.info(
            "Ledger debit applied",
            extra={
                "account_id": account_id,
                "kind": kind.value,
                "amount": str(amount),
                "balance_after": str(balance_after),
            },
        )

        return entry

    async def claim_threshold(
        self, credit: CreditResult, threshold: Decimal
    ) -> bool:
        """
        Decide whether a credit earns the threshold-reached notification.

        Only the first credit that takes an account from below the
        threshold to at or above it qualifies; falling back below and
        crossing again does not.

        Args:
            credit: Credit just applied in this transaction
            threshold: Balance level

        Returns:
            True if the notification should be sent for this credit
        """
        if not credit.crossed(threshold):
            return False
        return await self.account_repo.mark_threshold_reached(
            credit.entry.account_id
        )
