"""
Commission services package.

- schedule: rate-by-depth table
- margin_calculator: order margin and its split
- distributor: the distribution engine
"""

from app.services.commission.distributor import (
    CommissionDistributor,
    CommissionPayout,
    DistributionResult,
)
from app.services.commission.margin_calculator import MarginCalculator, MarginSplit
from app.services.commission.schedule import CommissionSchedule


__all__ = [
    "CommissionDistributor",
    "CommissionPayout",
    "CommissionSchedule",
    "DistributionResult",
    "MarginCalculator",
    "MarginSplit",
]
