"""
Unit tests for money helpers and the error taxonomy.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from app.utils.exceptions import (
    AccountNotFoundError,
    CommissionError,
    InsufficientBalanceError,
    NotificationError,
    OrderNotPaidError,
    StorageError,
    is_safe_to_ignore,
    must_log,
    must_raise,
)
from app.utils.formatters import format_account_identifier, format_money, to_money


class TestToMoney:
    """Test quantization to minor units."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("25", "25.00"),
            ("0.109", "0.10"),
            ("0.0999", "0.09"),
            ("12.345678", "12.34"),
        ],
    )
    def test_rounds_down(self, raw, expected):
        """Credits never exceed the computed amount."""
        assert to_money(Decimal(raw)) == Decimal(expected)

    def test_result_has_two_places(self):
        """Result is quantized to 0.01."""
        assert to_money(Decimal("7")).as_tuple().exponent == -2


class TestFormatting:
    """Test user-facing formatting."""

    def test_format_money(self):
        """Two decimals with currency sign."""
        assert format_money(Decimal("25")) == "₹25.00"

    def test_account_identifier_prefers_name(self):
        """Name when present, ID otherwise."""
        assert format_account_identifier(SimpleNamespace(id=4, name="Asha")) == "Asha"
        assert format_account_identifier(SimpleNamespace(id=4, name="")) == "ID:4"


class TestErrorTaxonomy:
    """Test error categories."""

    def test_all_errors_share_base(self):
        """Callers can catch every engine error at once."""
        for error in (
            AccountNotFoundError(1),
            OrderNotPaidError(1, "pending"),
            InsufficientBalanceError(1, Decimal("1"), Decimal("2")),
            StorageError("boom"),
            NotificationError("lost"),
        ):
            assert isinstance(error, CommissionError)

    def test_account_not_found_message(self):
        """Error carries the missing ID."""
        error = AccountNotFoundError(42)

        assert error.account_id == 42
        assert "42" in str(error)

    def test_notification_errors_are_ignorable(self):
        """Lost notifications never fail a distribution."""
        assert is_safe_to_ignore(NotificationError("lost"))
        assert not is_safe_to_ignore(StorageError("boom"))

    def test_storage_errors_are_retryable(self):
        """Storage failures are logged and retried."""
        assert must_log(StorageError("boom"))
        assert must_log(OperationalError("UPDATE", {}, Exception("locked")))
        assert not must_log(AccountNotFoundError(1))

    def test_missing_account_must_raise(self):
        """Missing buyer is fatal."""
        assert must_raise(AccountNotFoundError(1))
        assert must_raise(OrderNotPaidError(1, "cancelled"))
        assert not must_raise(NotificationError("lost"))
