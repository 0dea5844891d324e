"""
Referral chain management module.

Builds and reads upline snapshots. A snapshot is written once, when the
account is created, and is never recomputed afterwards.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.commission_constants import MAX_UPLINE_DEPTH
from app.models.referral import Referral
from app.repositories.account_repository import AccountRepository
from app.repositories.referral_repository import ReferralRepository
from app.utils.exceptions import ReferralError


class ReferralChainManager:
    """Manages upline snapshots."""

    def __init__(
        self, session: AsyncSession, max_depth: int = MAX_UPLINE_DEPTH
    ) -> None:
        """Initialize chain manager."""
        self.session = session
        self.max_depth = max_depth
        self.referral_repo = ReferralRepository(session)
        self.account_repo = AccountRepository(session)

    async def find_upline(self, account_id: int) -> list[int]:
        """
        Read an account's upline snapshot.

        Args:
            account_id: Account ID

        Returns:
            Ancestor IDs, nearest first (index 0 = direct referrer)
        """
        return await self.referral_repo.get_upline_ids(
            account_id, max_level=self.max_depth
        )

    async def build_upline(
        self, new_account_id: int, referrer_id: int
    ) -> list[int]:
        """
        Write the upline snapshot for a new account.

        Upline = [referrer] + referrer's upline, truncated to max_depth.
        Does not commit; runs inside the registration transaction.

        Args:
            new_account_id: Newly created account
            referrer_id: Direct referrer

        Returns:
            The stored upline, nearest first

        Raises:
            ReferralError: Self-referral, unknown referrer or a loop
        """
        if new_account_id == referrer_id:
            raise ReferralError("An account cannot refer itself")

        if not await self.account_repo.exists(id=referrer_id):
            raise ReferralError(f"Referrer {referrer_id} not found")

        upline = [referrer_id] + await self.referral_repo.get_upline_ids(
            referrer_id
        )
        upline = upline[: self.max_depth]

        if new_account_id in upline:
            logger.warning(
                "Referral loop detected",
                extra={
                    "new_account_id": new_account_id,
                    "referrer_id": referrer_id,
                },
            )
            raise ReferralError("Referral chain would contain a loop")

        self.session.add_all(
            Referral(
                referrer_id=ancestor_id,
                referral_id=new_account_id,
                level=level,
            )
            for level, ancestor_id in enumerate(upline, start=1)
        )
        await self.session.flush()

        logger.info(
            "Upline snapshot created",
            extra={
                "new_account_id": new_account_id,
                "referrer_id": referrer_id,
                "levels_created": len(upline),
            },
        )

        return upline
