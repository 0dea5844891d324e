"""
Margin calculator.

Computes an order's margin and splits it between the platform, the buyer
and the upline commission pool. Pure calculation, no database access.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from loguru import logger

from app.config.commission_constants import BUYER_CASHBACK_SHARE, DEFAULT_COST_RATIO
from app.utils.exceptions import InsufficientDataError


class PricedItem(Protocol):
    """Read-only view of an order line item."""

    unit_price: Decimal | None
    quantity: int
    unit_cost: Decimal | None


@dataclass(frozen=True)
class MarginSplit:
    """Result of splitting an order margin."""

    margin: Decimal
    company_share: Decimal
    remaining_pool: Decimal
    buyer_cashback: Decimal
    commission_pool: Decimal

    @classmethod
    def empty(cls, margin: Decimal = Decimal("0")) -> "MarginSplit":
        """Split for an order that yields no payouts."""
        zero = Decimal("0")
        return cls(
            margin=margin,
            company_share=zero,
            remaining_pool=zero,
            buyer_cashback=zero,
            commission_pool=zero,
        )


class MarginCalculator:
    """
    Margin calculator for commission distribution.

    Single source of truth for margin and split arithmetic.
    """

    def __init__(
        self,
        company_margin_share: Decimal,
        default_cost_ratio: Decimal = DEFAULT_COST_RATIO,
    ) -> None:
        """
        Initialize margin calculator.

        Args:
            company_margin_share: Fraction of margin kept by the platform
            default_cost_ratio: Unit cost as fraction of price when unknown
        """
        if not Decimal("0") <= company_margin_share < Decimal("1"):
            raise ValueError(
                f"company_margin_share must be in [0, 1), got {company_margin_share}"
            )
        self.company_margin_share = company_margin_share
        self.default_cost_ratio = default_cost_ratio

    def unit_cost(self, item: PricedItem) -> Decimal:
        """
        Cost of one unit, estimated from price when the item has none.

        Args:
            item: Line item

        Returns:
            Unit cost
        """
        if item.unit_cost is not None:
            return Decimal(item.unit_cost)
        return Decimal(item.unit_price) * self.default_cost_ratio

    def calculate_margin(self, items: Iterable[PricedItem]) -> Decimal:
        """
        Total margin: sum of (unit_price - unit_cost) * quantity.

        Args:
            items: Order line items

        Returns:
            Total margin (may be zero or negative)

        Raises:
            InsufficientDataError: No items, or an item without a price
        """
        items = list(items)
        if not items:
            raise InsufficientDataError("Order has no line items")

        total = Decimal("0")
        for item in items:
            if item.unit_price is None:
                raise InsufficientDataError("Order item has no price")
            price = Decimal(item.unit_price)
            total += (price - self.unit_cost(item)) * item.quantity

        return total

    def split(self, margin: Decimal) -> MarginSplit:
        """
        Split margin into company share, buyer cashback and commission pool.

        Example:
            >>> calc = MarginCalculator(Decimal("0.5"))
            >>> calc.split(Decimal("1000"))
            MarginSplit(margin=1000, company_share=500, remaining_pool=500,
                        buyer_cashback=250, commission_pool=250)

        Args:
            margin: Order margin

        Returns:
            MarginSplit (all zero shares if margin <= 0)
        """
        if margin <= 0:
            logger.debug(
                "Non-positive margin, nothing to split",
                extra={"margin": str(margin)},
            )
            return MarginSplit.empty(margin)

        company_share = margin * self.company_margin_share
        remaining_pool = margin - company_share
        buyer_cashback = remaining_pool * BUYER_CASHBACK_SHARE
        commission_pool = remaining_pool - buyer_cashback

        return MarginSplit(
            margin=margin,
            company_share=company_share,
            remaining_pool=remaining_pool,
            buyer_cashback=buyer_cashback,
            commission_pool=commission_pool,
        )
