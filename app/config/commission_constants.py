"""
Commission constants.

Reference values for margin splitting and the multi-level commission
schedule. Runtime code receives these through Settings and
CommissionSchedule, never by importing the table directly.
"""

from decimal import Decimal


# Money is credited in currency minor units
MONEY_QUANTUM = Decimal("0.01")

# Margin split
COMPANY_MARGIN_SHARE = Decimal("0.50")
BUYER_CASHBACK_SHARE = Decimal("0.5")  # of the pool left after the company share
DEFAULT_COST_RATIO = Decimal("0.8")  # unit cost = 80% of price when unknown

# Payout limits
MIN_COMMISSION_PAYOUT = Decimal("0.10")
MAX_UPLINE_DEPTH = 100

# Threshold notification
BALANCE_THRESHOLD = Decimal("10000")


def _tier(first: int, last: int, rate: str) -> dict[int, Decimal]:
    return {level: Decimal(rate) for level in range(first, last + 1)}


# Depth (1 = direct referrer) -> fraction of the commission pool
COMMISSION_LEVELS: dict[int, Decimal] = {
    1: Decimal("0.10"),
    2: Decimal("0.08"),
    3: Decimal("0.06"),
    4: Decimal("0.05"),
    5: Decimal("0.04"),
    **_tier(6, 10, "0.03"),
    **_tier(11, 30, "0.01"),
    **_tier(31, 60, "0.005"),
    **_tier(61, 100, "0.002"),
}
