"""
Commission schedule.

Maps upline depth to the fraction of the commission pool paid at that depth.
"""

from collections.abc import Mapping
from decimal import Decimal

from app.config.commission_constants import COMMISSION_LEVELS, MAX_UPLINE_DEPTH


class CommissionSchedule:
    """
    Rate-by-depth table, injected into the distribution engine.

    Depth is 1-based (1 = direct referrer). Depths without a configured
    rate, or beyond max_depth, pay nothing. Rates must sum to at most 1 so
    the payouts can never exceed the commission pool.
    """

    def __init__(
        self,
        rates: Mapping[int, Decimal],
        max_depth: int = MAX_UPLINE_DEPTH,
    ) -> None:
        """
        Initialize schedule.

        Args:
            rates: Depth -> rate (fraction of the commission pool)
            max_depth: Deepest level that can be paid

        Raises:
            ValueError: If a depth or rate is out of range
        """
        cleaned: dict[int, Decimal] = {}
        for depth, rate in rates.items():
            if depth < 1:
                raise ValueError(f"Commission depth must be >= 1, got {depth}")
            rate = Decimal(str(rate))
            if rate < 0 or rate > 1:
                raise ValueError(f"Commission rate for depth {depth} out of range: {rate}")
            if rate > 0 and depth <= max_depth:
                cleaned[depth] = rate

        total = sum(cleaned.values(), Decimal("0"))
        if total > 1:
            raise ValueError(f"Commission rates sum to {total}, must not exceed 1")

        self._rates = cleaned
        self.max_depth = max_depth

    @classmethod
    def default(cls, max_depth: int = MAX_UPLINE_DEPTH) -> "CommissionSchedule":
        """Reference schedule: 10/8/6/5/4%, then 3%, 1%, 0.5%, 0.2% tiers."""
        return cls(COMMISSION_LEVELS, max_depth=max_depth)

    def rate_for(self, depth: int) -> Decimal | None:
        """
        Get payout rate for a depth.

        Args:
            depth: 1-based upline position

        Returns:
            Rate, or None when the depth earns nothing
        """
        return self._rates.get(depth)

    @property
    def total_rate(self) -> Decimal:
        """Sum of all configured rates."""
        return sum(self._rates.values(), Decimal("0"))

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"<CommissionSchedule(levels={len(self._rates)}, total={self.total_rate})>"
