"""
Commission distributor.

Splits a paid order's margin between the platform, the buyer (cashback)
and the buyer's upline (commissions). All balance and ledger writes for an
order commit together or not at all; notifications go out afterwards.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.account import Account
from app.models.enums import LedgerEntryKind, NotificationKind
from app.models.order import Order
from app.repositories.account_repository import AccountRepository
from app.repositories.commission_distribution_repository import (
    CommissionDistributionRepository,
)
from app.repositories.order_repository import OrderRepository
from app.services.commission.margin_calculator import MarginCalculator
from app.services.commission.schedule import CommissionSchedule
from app.services.notification.emitter import (
    NotificationEmitter,
    PendingNotification,
)
from app.services.notification.messages import (
    cashback_message,
    commission_message,
    threshold_message,
)
from app.services.referral.chain_manager import ReferralChainManager
from app.services.wallet.ledger_manager import CreditResult, LedgerManager
from app.utils.exceptions import (
    AccountNotFoundError,
    CommissionError,
    InsufficientDataError,
    OrderNotPaidError,
    StorageError,
)
from app.utils.formatters import format_account_identifier, to_money


@dataclass
class CommissionPayout:
    """A single upline credit."""

    account_id: int
    depth: int
    rate: Decimal
    amount: Decimal


@dataclass
class DistributionResult:
    """Result of distributing one order."""

    order_id: int
    margin: Decimal = Decimal("0")
    company_share: Decimal = Decimal("0")
    buyer_cashback: Decimal = Decimal("0")
    commission_pool: Decimal = Decimal("0")
    payouts: list[CommissionPayout] = field(default_factory=list)
    notifications: list[PendingNotification] = field(default_factory=list)
    already_processed: bool = False

    @property
    def commissions_paid(self) -> Decimal:
        """Sum of upline payouts."""
        return sum((p.amount for p in self.payouts), Decimal("0"))

    @property
    def total_credited(self) -> Decimal:
        """Cashback plus commissions credited for this order."""
        return self.buyer_cashback + self.commissions_paid


class CommissionDistributor:
    """
    Commission distribution engine.

    One instance per session. The session must not hold other pending
    work: distribute() commits or rolls it back.
    """

    def __init__(
        self,
        session: AsyncSession,
        schedule: CommissionSchedule | None = None,
        emitter: NotificationEmitter | None = None,
        company_margin_share: Decimal | None = None,
        min_payout: Decimal | None = None,
        balance_threshold: Decimal | None = None,
        default_cost_ratio: Decimal | None = None,
    ) -> None:
        """
        Initialize distributor.

        Args:
            session: Database session owning the distribution transaction
            schedule: Rate-by-depth table (default: reference schedule)
            emitter: Post-commit notification sink (None disables)
            company_margin_share: Platform share of margin
            min_payout: Smallest commission that is credited
            balance_threshold: Balance level that triggers a notification
            default_cost_ratio: Unit cost fraction for items without cost
        """
        self.session = session
        self.schedule = schedule or CommissionSchedule.default(
            settings.max_upline_depth
        )
        self.emitter = emitter
        self.min_payout = (
            settings.min_commission_payout if min_payout is None else min_payout
        )
        self.balance_threshold = (
            settings.balance_threshold
            if balance_threshold is None
            else balance_threshold
        )
        self.margin_calculator = MarginCalculator(
            settings.company_margin_share
            if company_margin_share is None
            else company_margin_share,
            settings.default_cost_ratio
            if default_cost_ratio is None
            else default_cost_ratio,
        )

        self.account_repo = AccountRepository(session)
        self.order_repo = OrderRepository(session)
        self.distribution_repo = CommissionDistributionRepository(session)
        self.chain_manager = ReferralChainManager(
            session, max_depth=self.schedule.max_depth
        )
        self.ledger = LedgerManager(session)

    async def distribute_by_id(self, order_id: int) -> DistributionResult:
        """
        Load an order and distribute it.

        Raises:
            CommissionError: Unknown order or any distribute() error
        """
        try:
            order = await self.order_repo.get_with_items(order_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to load order {order_id}: {e}") from e

        if order is None:
            raise CommissionError(f"Order {order_id} not found")
        return await self.distribute(order)

    async def distribute(self, order: Order) -> DistributionResult:
        """
        Distribute a paid order's margin.

        Safe to call more than once for the same order: only the first
        successful call moves money.

        Args:
            order: Paid order with items loaded

        Returns:
            DistributionResult (already_processed=True on a repeat call)

        Raises:
            OrderNotPaidError: Order is not in a paid state
            AccountNotFoundError: Buyer does not exist
            StorageError: Transaction could not be completed
        """
        order_id = order.id

        if not order.is_paid:
            raise OrderNotPaidError(order_id, order.status)

        if await self._is_distributed(order_id):
            logger.info(
                "Order already distributed, skipping",
                extra={"order_id": order_id},
            )
            return DistributionResult(order_id=order_id, already_processed=True)

        try:
            result = await self._apply(order)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            # A concurrent call for the same order won the race
            if await self._is_distributed(order_id):
                logger.info(
                    "Order distributed concurrently, skipping",
                    extra={"order_id": order_id},
                )
                return DistributionResult(
                    order_id=order_id, already_processed=True
                )
            raise StorageError(
                f"Commission distribution for order {order_id} failed: {e}"
            ) from e
        except CommissionError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(
                f"Commission distribution for order {order_id} failed: {e}"
            ) from e

        logger.info(
            "Commission distributed",
            extra={
                "order_id": order_id,
                "margin": str(result.margin),
                "company_share": str(result.company_share),
                "buyer_cashback": str(result.buyer_cashback),
                "commissions_paid": str(result.commissions_paid),
                "payouts_count": len(result.payouts),
            },
        )

        if self.emitter and result.notifications:
            await self.emitter.emit_all(result.notifications)

        return result

    async def _is_distributed(self, order_id: int) -> bool:
        """
        Check the exactly-once marker for an order.

        Raises:
            StorageError: Marker could not be read
        """
        try:
            distribution = await self.distribution_repo.get_by_order(order_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(
                f"Failed to check distribution state of order {order_id}: {e}"
            ) from e
        return distribution is not None

    async def _apply(self, order: Order) -> DistributionResult:
        """Perform every write for an order inside the open transaction."""
        buyer = await self.account_repo.get_by_id(order.buyer_id)
        if buyer is None:
            raise AccountNotFoundError(order.buyer_id)

        try:
            margin = self.margin_calculator.calculate_margin(order.items)
        except InsufficientDataError as e:
            logger.warning(
                "Order has no priced items, treating margin as zero",
                extra={"order_id": order.id, "reason": str(e)},
            )
            margin = Decimal("0")

        if margin <= 0:
            logger.info(
                "No margin to distribute",
                extra={"order_id": order.id, "margin": str(margin)},
            )
            return DistributionResult(order_id=order.id, margin=margin)

        split = self.margin_calculator.split(margin)
        cashback = to_money(split.buyer_cashback)

        # Claims the order: a second distribution fails on the unique order_id
        distribution = await self.distribution_repo.create(
            order_id=order.id,
            buyer_id=buyer.id,
            margin=margin,
            company_share=split.company_share,
            buyer_cashback=cashback,
            commission_pool=split.commission_pool,
        )

        result = DistributionResult(
            order_id=order.id,
            margin=margin,
            company_share=split.company_share,
            buyer_cashback=cashback,
            commission_pool=split.commission_pool,
        )

        if cashback > 0:
            credit = await self.ledger.apply_credit(
                buyer.id,
                cashback,
                LedgerEntryKind.CASHBACK,
                f"Cashback for order {order.order_number}",
                related_order_id=order.id,
            )
            result.notifications.append(
                PendingNotification(
                    account_id=buyer.id,
                    kind=NotificationKind.CASHBACK,
                    message=cashback_message(cashback, order.order_number),
                    payload={
                        "order_id": order.id,
                        "order_number": order.order_number,
                        "amount": str(cashback),
                    },
                )
            )
            await self._check_threshold(credit, buyer.id, order, result)

        if split.commission_pool > 0:
            await self._pay_upline(order, buyer, split.commission_pool, result)

        distribution.commissions_paid = result.commissions_paid
        distribution.payouts_count = len(result.payouts)
        await self.session.flush()

        return result

    async def _pay_upline(
        self,
        order: Order,
        buyer: Account,
        pool: Decimal,
        result: DistributionResult,
    ) -> None:
        """Credit each qualifying upline member, nearest first."""
        upline = await self.chain_manager.find_upline(buyer.id)
        if not upline:
            return

        buyer_name = format_account_identifier(buyer)

        for depth, ancestor_id in enumerate(upline, start=1):
            rate = self.schedule.rate_for(depth)
            if rate is None:
                continue

            amount = to_money(pool * rate)
            if amount < self.min_payout:
                logger.debug(
                    "Commission below minimum payout, dropped",
                    extra={
                        "order_id": order.id,
                        "account_id": ancestor_id,
                        "depth": depth,
                        "amount": str(pool * rate),
                    },
                )
                continue

            try:
                credit = await self.ledger.apply_credit(
                    ancestor_id,
                    amount,
                    LedgerEntryKind.COMMISSION,
                    f"Level {depth} commission from order {order.order_number}",
                    related_order_id=order.id,
                    related_account_id=buyer.id,
                )
            except AccountNotFoundError:
                logger.warning(
                    "Upline account not found, commission skipped",
                    extra={
                        "order_id": order.id,
                        "account_id": ancestor_id,
                        "depth": depth,
                    },
                )
                continue

            result.payouts.append(
                CommissionPayout(
                    account_id=ancestor_id,
                    depth=depth,
                    rate=rate,
                    amount=amount,
                )
            )
            result.notifications.append(
                PendingNotification(
                    account_id=ancestor_id,
                    kind=NotificationKind.COMMISSION,
                    message=commission_message(
                        amount, depth, buyer_name, order.order_number
                    ),
                    payload={
                        "order_id": order.id,
                        "order_number": order.order_number,
                        "buyer_id": buyer.id,
                        "level": depth,
                        "amount": str(amount),
                    },
                )
            )
            await self._check_threshold(credit, ancestor_id, order, result)

    async def _check_threshold(
        self,
        credit: CreditResult,
        account_id: int,
        order: Order,
        result: DistributionResult,
    ) -> None:
        claimed = await self.ledger.claim_threshold(
            credit, self.balance_threshold
        )
        if not claimed:
            return

        result.notifications.append(
            PendingNotification(
                account_id=account_id,
                kind=NotificationKind.THRESHOLD_REACHED,
                message=threshold_message(
                    self.balance_threshold, credit.balance_after
                ),
                payload={
                    "order_id": order.id,
                    "threshold": str(self.balance_threshold),
                    "balance": str(to_money(credit.balance_after)),
                },
            )
        )
