"""
Wallet service.

Account-facing wallet operations: balance, history, spending and manual
bonus credits. Each write is its own transaction. A bonus that lifts the
balance over the threshold is notified like a commission would be.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import LedgerEntryKind, NotificationKind
from app.models.ledger_entry import LedgerEntry
from app.repositories.account_repository import AccountRepository
from app.repositories.ledger_repository import LedgerRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.notification.emitter import (
    NotificationEmitter,
    PendingNotification,
)
from app.services.notification.messages import threshold_message
from app.services.wallet.ledger_manager import LedgerManager
from app.utils.exceptions import AccountNotFoundError
from app.utils.formatters import to_money


class WalletService(BaseService):
    """Wallet operations for a single account."""

    def __init__(
        self,
        session: AsyncSession,
        emitter: NotificationEmitter | None = None,
        balance_threshold: Decimal | None = None,
    ) -> None:
        """
        Initialize wallet service.

        Args:
            session: Async database session
            emitter: Notification sink; None disables notifications
            balance_threshold: Balance that triggers the one-time
                notification (default from settings)
        """
        super().__init__(session)
        self.emitter = emitter
        self.balance_threshold = (
            settings.balance_threshold
            if balance_threshold is None
            else balance_threshold
        )
        self.account_repo = AccountRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.ledger = LedgerManager(session)

    async def get_balance(self, account_id: int) -> Decimal:
        """
        Get current spendable balance.

        Raises:
            AccountNotFoundError: Unknown account
        """
        balance = await self.account_repo.get_balance(account_id)
        if balance is None:
            raise AccountNotFoundError(account_id)
        return balance

    async def get_history(
        self, account_id: int, page: int = 1, per_page: int = 20
    ) -> tuple[list[LedgerEntry], int]:
        """
        Get ledger history, newest first.

        Args:
            account_id: Account ID
            page: Page number (1-indexed)
            per_page: Entries per page

        Returns:
            Tuple of (entries, total_count)
        """
        return await self.ledger_repo.find_paginated(
            page=page,
            per_page=per_page,
            newest_first=True,
            account_id=account_id,
        )

    @transaction
    @log_operation
    async def spend(
        self,
        account_id: int,
        amount: Decimal,
        description: str,
        order_id: int | None = None,
    ) -> LedgerEntry:
        """
        Pay with wallet balance.

        Args:
            account_id: Account ID
            amount: Amount to spend
            description: Ledger description
            order_id: Order paid with the balance

        Returns:
            Debit ledger entry

        Raises:
            InsufficientBalanceError: Balance does not cover amount
        """
        return await self.ledger.apply_debit(
            account_id,
            to_money(amount),
            description,
            kind=LedgerEntryKind.DEBIT,
            related_order_id=order_id,
        )

    @transaction
    @log_operation
    async def withdraw(
        self, account_id: int, amount: Decimal, description: str = "Withdrawal"
    ) -> LedgerEntry:
        """
        Withdraw balance out of the platform.

        Raises:
            InsufficientBalanceError: Balance does not cover amount
        """
        return await self.ledger.apply_debit(
            account_id,
            to_money(amount),
            description,
            kind=LedgerEntryKind.WITHDRAWAL,
        )

    async def grant_bonus(
        self, account_id: int, amount: Decimal, description: str
    ) -> LedgerEntry:
        """
        Credit a manual bonus.

        Args:
            account_id: Account ID
            amount: Bonus amount
            description: Reason shown in history

        Returns:
            Bonus ledger entry
        """
        entry, notification = await self._apply_bonus(
            account_id, amount, description
        )

        if notification is not None and self.emitter is not None:
            await self.emitter.emit_all([notification])

        return entry

    @transaction
    @log_operation
    async def _apply_bonus(
        self, account_id: int, amount: Decimal, description: str
    ) -> tuple[LedgerEntry, PendingNotification | None]:
        credit = await self.ledger.apply_credit(
            account_id,
            to_money(amount),
            LedgerEntryKind.BONUS,
            description,
        )
        self.logger.info(
            "Bonus granted",
            extra={
                "account_id": account_id,
                "amount": str(credit.entry.amount),
                "balance_after": str(credit.balance_after),
            },
        )

        notification = None
        if await self.ledger.claim_threshold(credit, self.balance_threshold):
            notification = PendingNotification(
                account_id=account_id,
                kind=NotificationKind.THRESHOLD_REACHED,
                message=threshold_message(
                    self.balance_threshold, credit.balance_after
                ),
                payload={
                    "threshold": str(self.balance_threshold),
                    "balance": str(to_money(credit.balance_after)),
                },
            )

        return credit.entry, notification
