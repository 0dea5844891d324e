"""
Unit tests for ledger manager guards and threshold detection.

Database behaviour is covered by the integration tests; these check the
checks that run before any statement is issued.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models.enums import LedgerEntryKind
from app.services.wallet.ledger_manager import CreditResult, LedgerManager
from app.utils.exceptions import AccountNotFoundError


@pytest.fixture
def manager(mock_session):
    """LedgerManager over a mocked session."""
    return LedgerManager(mock_session)


class TestCreditGuards:
    """Test credit validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-1"])
    async def test_non_positive_credit_rejected(self, manager, mock_session, amount):
        """Credits must be positive."""
        with pytest.raises(ValueError):
            await manager.apply_credit(
                1, Decimal(amount), LedgerEntryKind.CASHBACK, "x"
            )
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_debit_kind_rejected_for_credit(self, manager, mock_session):
        """Withdrawal cannot be recorded as a credit."""
        with pytest.raises(ValueError):
            await manager.apply_credit(
                1, Decimal("5"), LedgerEntryKind.WITHDRAWAL, "x"
            )
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_account(self, manager, mock_session):
        """No row updated means the account does not exist."""
        mock_session.execute = AsyncMock(return_value=MagicMock(rowcount=0))

        with pytest.raises(AccountNotFoundError):
            await manager.apply_credit(
                99, Decimal("5"), LedgerEntryKind.COMMISSION, "x"
            )
        mock_session.add.assert_not_called()


class TestDebitGuards:
    """Test debit validation."""

    @pytest.mark.asyncio
    async def test_credit_kind_rejected_for_debit(self, manager, mock_session):
        """Bonus cannot be recorded as a debit."""
        with pytest.raises(ValueError):
            await manager.apply_debit(
                1, Decimal("5"), "x", kind=LedgerEntryKind.BONUS
            )
        mock_session.execute.assert_not_called()


class TestThresholdCrossing:
    """Test CreditResult.crossed."""

    @pytest.mark.parametrize(
        "before,after,crossed",
        [
            ("9990", "10010", True),
            ("9990", "10000", True),
            ("10000", "10050", False),
            ("9000", "9999.99", False),
        ],
    )
    def test_crossed(self, before, after, crossed):
        """Fires only when moving from below to at-or-above."""
        result = CreditResult(
            entry=MagicMock(),
            balance_before=Decimal(before),
            balance_after=Decimal(after),
        )

        assert result.crossed(Decimal("10000")) is crossed


class TestClaimThreshold:
    """Test LedgerManager.claim_threshold."""

    @staticmethod
    def credit(before: str, after: str) -> CreditResult:
        return CreditResult(
            entry=MagicMock(account_id=7),
            balance_before=Decimal(before),
            balance_after=Decimal(after),
        )

    @pytest.mark.asyncio
    async def test_no_crossing_skips_claim(self, manager, mock_session):
        """Nothing is written when the credit does not cross."""
        claimed = await manager.claim_threshold(
            self.credit("10", "20"), Decimal("100")
        )

        assert claimed is False
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rowcount,claimed", [(1, True), (0, False)])
    async def test_crossing_claims_once(
        self, manager, mock_session, rowcount, claimed
    ):
        """Only the credit that sets the mark is notified."""
        mock_session.execute = AsyncMock(
            return_value=MagicMock(rowcount=rowcount)
        )

        result = await manager.claim_threshold(
            self.credit("90", "340"), Decimal("100")
        )

        assert result is claimed
        mock_session.execute.assert_awaited_once()
