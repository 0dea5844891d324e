"""
Notification message templates.
"""

from decimal import Decimal

from app.utils.formatters import format_money


def cashback_message(amount: Decimal, order_number: str) -> str:
    """Message for a buyer cashback credit."""
    return (
        f"You earned {format_money(amount)} cashback "
        f"on order {order_number}."
    )


def commission_message(
    amount: Decimal, depth: int, buyer_name: str, order_number: str
) -> str:
    """Message for an upline commission credit."""
    return (
        f"You earned {format_money(amount)} commission (level {depth}) "
        f"from {buyer_name}'s order {order_number}."
    )


def threshold_message(threshold: Decimal, balance: Decimal) -> str:
    """Message for a balance crossing the threshold."""
    return (
        f"Your wallet balance reached {format_money(balance)}, "
        f"passing {format_money(threshold)}."
    )
