"""
Formatters utility.

Utility functions for formatting data in the app layer.
"""

from decimal import ROUND_DOWN, Decimal

from app.config.commission_constants import MONEY_QUANTUM


def to_money(amount: Decimal) -> Decimal:
    """
    Truncate an amount to currency minor units.

    Rounds toward zero so a credit never exceeds the amount it was
    computed from.

    Args:
        amount: Raw amount

    Returns:
        Amount quantized to 0.01
    """
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def format_money(amount: Decimal) -> str:
    """
    Format amount for user-facing messages.

    Args:
        amount: Amount

    Returns:
        String like "₹25.00"
    """
    return f"₹{amount:.2f}"


def format_account_identifier(account) -> str:
    """
    Format account as its name or ID:<id>.

    Args:
        account: Object with name and id attributes

    Returns:
        Formatted string like "Jane" or "ID:42"
    """
    if getattr(account, "name", None):
        return account.name
    if hasattr(account, "id"):
        return f"ID:{account.id}"
    return "Unknown"
