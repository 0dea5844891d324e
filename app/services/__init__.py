"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import BaseService, log_operation, transaction

# Core Services
from app.services.account_service import AccountService
from app.services.commission import (
    CommissionDistributor,
    CommissionSchedule,
    DistributionResult,
    MarginCalculator,
)
from app.services.notification import (
    NotificationEmitter,
    NotificationService,
    PendingNotification,
)
from app.services.order_payment_service import (
    OrderPaymentService,
    PaymentConfirmation,
)
from app.services.referral import ReferralChainManager
from app.services.wallet import (
    LedgerAuditService,
    LedgerManager,
    WalletService,
)


__all__ = [
    # Base
    "BaseService",
    "log_operation",
    "transaction",
    # Accounts & referrals
    "AccountService",
    "ReferralChainManager",
    # Commission
    "CommissionDistributor",
    "CommissionSchedule",
    "DistributionResult",
    "MarginCalculator",
    "OrderPaymentService",
    "PaymentConfirmation",
    # Wallet
    "LedgerAuditService",
    "LedgerManager",
    "WalletService",
    # Notifications
    "NotificationEmitter",
    "NotificationService",
    "PendingNotification",
]
