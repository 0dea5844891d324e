"""
Account service.

Registration with an optional referral code, and the referral network
view of an account.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.account import Account
from app.repositories.account_repository import AccountRepository
from app.repositories.referral_repository import ReferralRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.referral.chain_manager import ReferralChainManager
from app.utils.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    ReferralError,
)

REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 8


def generate_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Random code without ambiguous characters (0/O, 1/I)."""
    return "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length)
    )


class AccountService(BaseService):
    """Account registration and referral network."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account service."""
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.chain_manager = ReferralChainManager(
            session, max_depth=settings.max_upline_depth
        )

    @transaction
    @log_operation
    async def register(
        self, name: str, email: str, referrer_code: str | None = None
    ) -> Account:
        """
        Create an account and its upline snapshot in one transaction.

        Args:
            name: Display name
            email: Email address (unique)
            referrer_code: Referral code of the inviting account

        Returns:
            Created account

        Raises:
            ReferralError: Unknown referral code
            DuplicateAccountError: Email already registered
        """
        email = email.strip().lower()
        if await self.account_repo.get_by_email(email):
            raise DuplicateAccountError(
                f"Account with email {email} already exists"
            )

        referrer = None
        if referrer_code:
            referrer = await self.account_repo.get_by_referral_code(
                referrer_code
            )
            if referrer is None:
                raise ReferralError(f"Unknown referral code {referrer_code}")

        account = await self.account_repo.create(
            name=name.strip(),
            email=email,
            referral_code=await self._unique_referral_code(),
            referrer_id=referrer.id if referrer else None,
        )

        if referrer is not None:
            await self.chain_manager.build_upline(account.id, referrer.id)

        self.logger.info(
            "Account registered",
            extra={
                "account_id": account.id,
                "referrer_id": referrer.id if referrer else None,
            },
        )
        return account

    async def get_by_referral_code(self, referral_code: str) -> Account | None:
        """Look up an account by its referral code."""
        return await self.account_repo.get_by_referral_code(referral_code)

    async def get_direct_referrals(self, account_id: int) -> list[Account]:
        """
        Get accounts invited directly by this account.

        Raises:
            AccountNotFoundError: Unknown account
        """
        if not await self.account_repo.exists(id=account_id):
            raise AccountNotFoundError(account_id)
        return await self.account_repo.get_direct_referrals(account_id)

    async def get_downline_counts(self, account_id: int) -> dict[int, int]:
        """
        Downline size per level.

        Args:
            account_id: Account ID

        Returns:
            Level -> number of accounts at that depth below the account
        """
        return await self.referral_repo.get_level_counts(account_id)

    async def get_upline(self, account_id: int) -> list[int]:
        """Get the account's upline snapshot, nearest first."""
        return await self.chain_manager.find_upline(account_id)

    async def _unique_referral_code(self) -> str:
        code = generate_referral_code()
        while await self.account_repo.exists(referral_code=code):
            code = generate_referral_code()
        return code
