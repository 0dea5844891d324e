"""
Referral services package.

- chain_manager: builds upline snapshots at registration and reads them
  at distribution time
"""

from app.services.referral.chain_manager import ReferralChainManager


__all__ = [
    "ReferralChainManager",
]
