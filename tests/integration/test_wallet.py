"""
Integration tests for wallet operations and the ledger audit.
"""

from decimal import Decimal

import pytest
from sqlalchemy import update

from app.models import Account, LedgerEntryKind, NotificationKind
from app.repositories.ledger_repository import LedgerRepository
from app.services.notification.emitter import NotificationEmitter
from app.services.notification.notification_service import NotificationService
from app.services.wallet.audit import LedgerAuditService
from app.services.wallet.wallet_service import WalletService
from app.utils.exceptions import (
    AccountNotFoundError,
    DuplicateLedgerEntryError,
    InsufficientBalanceError,
)


@pytest.fixture
def wallet(session):
    return WalletService(session)


class TestBalance:
    """Balance reads."""

    @pytest.mark.asyncio
    async def test_unknown_account(self, wallet):
        """Unknown account raises."""
        with pytest.raises(AccountNotFoundError):
            await wallet.get_balance(9999)

    @pytest.mark.asyncio
    async def test_bonus_then_spend(self, session, wallet, make_account):
        """Credits and debits move the balance and append entries."""
        account = await make_account(session, "Holder")
        await session.commit()

        bonus = await wallet.grant_bonus(account.id, Decimal("100"), "Promo")
        debit = await wallet.spend(account.id, Decimal("30.255"), "Order ORD-1")

        assert bonus.kind == LedgerEntryKind.BONUS.value
        assert bonus.amount == Decimal("100")
        assert debit.kind == LedgerEntryKind.DEBIT.value
        assert debit.amount == Decimal("-30.25")
        assert debit.balance_after == Decimal("69.75")
        assert await wallet.get_balance(account.id) == Decimal("69.75")


class TestDebits:
    """Debits never take a balance negative."""

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, session, wallet, make_account):
        """Rejected debit changes nothing."""
        account = await make_account(session, "Holder")
        await session.commit()
        await wallet.grant_bonus(account.id, Decimal("10"), "Promo")

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await wallet.spend(account.id, Decimal("10.01"), "Too much")

        assert exc_info.value.available == Decimal("10")
        assert await wallet.get_balance(account.id) == Decimal("10")
        _, total = await wallet.get_history(account.id)
        assert total == 1

    @pytest.mark.asyncio
    async def test_spend_exact_balance(self, session, wallet, make_account):
        """Balance may reach exactly zero."""
        account = await make_account(session, "Holder")
        await session.commit()
        await wallet.grant_bonus(account.id, Decimal("10"), "Promo")

        await wallet.spend(account.id, Decimal("10"), "All of it")

        assert await wallet.get_balance(account.id) == 0

    @pytest.mark.asyncio
    async def test_withdraw(self, session, wallet, make_account):
        """Withdrawal is a negative withdrawal entry."""
        account = await make_account(session, "Holder")
        await session.commit()
        await wallet.grant_bonus(account.id, Decimal("50"), "Promo")

        entry = await wallet.withdraw(account.id, Decimal("20"))

        assert entry.kind == LedgerEntryKind.WITHDRAWAL.value
        assert entry.amount == Decimal("-20")
        assert entry.description == "Withdrawal"
        assert await wallet.get_balance(account.id) == Decimal("30")

    @pytest.mark.asyncio
    async def test_debit_unknown_account(self, wallet):
        """Unknown account is not reported as insufficient balance."""
        with pytest.raises(AccountNotFoundError):
            await wallet.spend(9999, Decimal("1"), "Ghost")

    @pytest.mark.asyncio
    async def test_order_paid_from_balance_once(
        self, session, wallet, make_account, make_order
    ):
        """Second debit for the same order is rejected and rolled back."""
        account = await make_account(session, "Holder")
        order = await make_order(session, account.id)
        await session.commit()
        await wallet.grant_bonus(account.id, Decimal("100"), "Promo")

        await wallet.spend(account.id, Decimal("40"), "Order", order_id=order.id)

        with pytest.raises(DuplicateLedgerEntryError) as exc_info:
            await wallet.spend(
                account.id, Decimal("40"), "Order again", order_id=order.id
            )

        assert exc_info.value.order_id == order.id
        assert exc_info.value.kind == LedgerEntryKind.DEBIT.value
        assert await wallet.get_balance(account.id) == Decimal("60")
        _, total = await wallet.get_history(account.id)
        assert total == 2

    @pytest.mark.asyncio
    async def test_separate_orders_both_debited(
        self, session, wallet, make_account, make_order
    ):
        """The guard is per order, not per account."""
        account = await make_account(session, "Holder")
        first = await make_order(session, account.id)
        second = await make_order(session, account.id)
        await session.commit()
        await wallet.grant_bonus(account.id, Decimal("100"), "Promo")

        await wallet.spend(account.id, Decimal("40"), "First", order_id=first.id)
        await wallet.spend(account.id, Decimal("40"), "Second", order_id=second.id)

        assert await wallet.get_balance(account.id) == Decimal("20")


class TestBonusThreshold:
    """Bonuses count towards the one-time threshold notification."""

    @pytest.mark.asyncio
    async def test_bonus_crossing_notified_once(
        self, session, session_maker, make_account
    ):
        """Dropping below and crossing again stays silent."""
        account = await make_account(session, "Holder")
        await session.commit()

        wallet = WalletService(
            session,
            emitter=NotificationEmitter(session_maker),
            balance_threshold=Decimal("100"),
        )

        await wallet.grant_bonus(account.id, Decimal("60"), "Promo")
        await wallet.grant_bonus(account.id, Decimal("50"), "Promo")
        await wallet.spend(account.id, Decimal("100"), "Order")
        await wallet.grant_bonus(account.id, Decimal("100"), "Promo")

        inbox = await NotificationService(session).list_notifications(account.id)
        assert [n.kind for n in inbox] == [
            NotificationKind.THRESHOLD_REACHED.value
        ]
        assert inbox[0].payload["balance"] == "110.00"
        assert inbox[0].payload["threshold"] == "100"

        await session.refresh(account)
        assert account.threshold_reached_at is not None

    @pytest.mark.asyncio
    async def test_no_emitter_still_claims(self, session, make_account):
        """Without an emitter the crossing is recorded but nothing is stored."""
        account = await make_account(session, "Holder")
        await session.commit()

        wallet = WalletService(session, balance_threshold=Decimal("100"))
        await wallet.grant_bonus(account.id, Decimal("150"), "Promo")

        await session.refresh(account)
        assert account.threshold_reached_at is not None
        assert await NotificationService(session).unread_count(account.id) == 0


class TestHistory:
    """Ledger history pagination."""

    @pytest.mark.asyncio
    async def test_newest_first_paginated(self, session, wallet, make_account):
        """Pages are newest first and the total covers all entries."""
        account = await make_account(session, "Holder")
        await session.commit()
        for i in range(1, 6):
            await wallet.grant_bonus(account.id, Decimal(i), f"Bonus {i}")

        first_page, total = await wallet.get_history(account.id, per_page=2)
        last_page, _ = await wallet.get_history(account.id, page=3, per_page=2)

        assert total == 5
        assert [e.description for e in first_page] == ["Bonus 5", "Bonus 4"]
        assert [e.description for e in last_page] == ["Bonus 1"]

    @pytest.mark.asyncio
    async def test_history_scoped_to_account(self, session, wallet, make_account):
        """Other accounts' entries are not listed."""
        mine = await make_account(session, "Mine")
        theirs = await make_account(session, "Theirs")
        await session.commit()
        await wallet.grant_bonus(mine.id, Decimal("1"), "Mine")
        await wallet.grant_bonus(theirs.id, Decimal("2"), "Theirs")

        entries, total = await wallet.get_history(mine.id)

        assert total == 1
        assert entries[0].account_id == mine.id


class TestLedgerAudit:
    """LedgerAuditService"""

    @pytest.mark.asyncio
    async def test_consistent_after_distribution(
        self, session, wallet, make_account, make_order
    ):
        """Distribution, bonus and debit keep balance == sum(ledger)."""
        from app.services.commission.distributor import CommissionDistributor

        referrer = await make_account(session, "Referrer")
        buyer = await make_account(session, "Buyer", referrer=referrer)
        order = await make_order(session, buyer.id)
        await session.commit()

        await CommissionDistributor(
            session, company_margin_share=Decimal("0.5")
        ).distribute(order)
        await wallet.grant_bonus(referrer.id, Decimal("5"), "Promo")
        await wallet.spend(buyer.id, Decimal("100"), "Next order")

        report = await LedgerAuditService(session).run()

        assert report.is_consistent
        assert report.accounts_checked == 2
        assert report.company_total == Decimal("500")
        assert await LedgerRepository(session).sum_by_account(buyer.id) == Decimal("150")

    @pytest.mark.asyncio
    async def test_detects_tampered_balance(self, session, wallet, make_account):
        """A balance changed outside the ledger is reported."""
        account = await make_account(session, "Holder")
        await session.commit()
        await wallet.grant_bonus(account.id, Decimal("10"), "Promo")

        await session.execute(
            update(Account)
            .where(Account.id == account.id)
            .values(balance=Decimal("15"))
        )
        await session.commit()

        report = await LedgerAuditService(session).run()

        assert not report.is_consistent
        [discrepancy] = report.discrepancies
        assert discrepancy.account_id == account.id
        assert discrepancy.difference == Decimal("5")
