"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, payouts
# Precision: 18 digits total, 8 after decimal point
# Credits are quantized to minor units before they are stored
MoneyType = DECIMAL(18, 8)
