"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

from sqlalchemy.exc import OperationalError


class CommissionError(Exception):
    """Base class for wallet and commission errors."""

    pass


class AccountNotFoundError(CommissionError):
    """Raised when a required account does not exist. Aborts distribution."""

    def __init__(self, account_id: int) -> None:
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class OrderNotPaidError(CommissionError):
    """Raised when distribution is requested for an unpaid order."""

    def __init__(self, order_id: int, status: str) -> None:
        self.order_id = order_id
        self.status = status
        super().__init__(
            f"Order {order_id} is '{status}', payment not confirmed"
        )


class InsufficientDataError(CommissionError):
    """Order has no priced items. Treated as zero margin, not a failure."""

    pass


class InsufficientBalanceError(CommissionError):
    """Raised when a debit would take a balance below zero."""

    def __init__(self, account_id: int, available, requested) -> None:
        self.account_id = account_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Account {account_id} has {available}, requested {requested}"
        )


class StorageError(CommissionError):
    """Raised when the atomic unit cannot be committed or rolled back."""

    pass


class NotificationError(CommissionError):
    """Notification could not be stored. Always swallowed and logged."""

    pass


class ReferralError(CommissionError):
    """Raised for invalid referral relationships (self-referral, bad code)."""

    pass


class DuplicateAccountError(CommissionError):
    """Raised when registering an email that is already taken."""

    pass


class DuplicateLedgerEntryError(CommissionError):
    """Raised when an order already has this kind of entry for the account."""

    def __init__(self, account_id: int, order_id: int, kind: str) -> None:
        self.account_id = account_id
        self.order_id = order_id
        self.kind = kind
        super().__init__(
            f"Account {account_id} already has a {kind} entry for order {order_id}"
        )


# Exception categories based on handling strategy

# Safe to ignore - best-effort side channels
SAFE_TO_IGNORE = (
    NotificationError,
)

# Must log but can continue - retried by the commission retry job
MUST_LOG = (
    OperationalError,
    StorageError,
)

# Must raise - the caller has to see these
MUST_RAISE = (
    AccountNotFoundError,
    OrderNotPaidError,
    InsufficientBalanceError,
    ReferralError,
    DuplicateAccountError,
    DuplicateLedgerEntryError,
)


def is_safe_to_ignore(exc: Exception) -> bool:
    """
    Check if exception can be safely ignored.

    Args:
        exc: Exception to check

    Returns:
        True if exception is safe to ignore
    """
    return isinstance(exc, SAFE_TO_IGNORE)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, MUST_LOG)


def must_raise(exc: Exception) -> bool:
    """
    Check if exception must be raised.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be raised
    """
    return isinstance(exc, MUST_RAISE)
