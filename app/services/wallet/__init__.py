"""
Wallet services package.

- ledger_manager: atomic balance update + ledger append
- wallet_service: balance, history, spend, withdraw, bonus
- audit: balance vs ledger reconciliation
"""

from app.services.wallet.audit import (
    AuditReport,
    BalanceDiscrepancy,
    LedgerAuditService,
)
from app.services.wallet.ledger_manager import CreditResult, LedgerManager
from app.services.wallet.wallet_service import WalletService


__all__ = [
    "AuditReport",
    "BalanceDiscrepancy",
    "CreditResult",
    "LedgerAuditService",
    "LedgerManager",
    "WalletService",
]
