"""
Property-based test of the conservation invariant.

For random referral trees and random orders, every account balance must
equal the sum of its ledger entries, and no order may credit more than
its margin net of the company share.
"""

import asyncio
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models import Base
from app.services.commission.distributor import CommissionDistributor
from app.services.wallet.audit import LedgerAuditService
from tests.conftest import add_account, add_order, sqlite_engine

COMPANY_SHARE = Decimal("0.5")

prices = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("5000"), places=2
)

line_items = st.lists(
    st.tuples(
        prices,
        st.one_of(st.none(), prices),
        st.integers(min_value=1, max_value=5),
    ),
    min_size=0,
    max_size=4,
)


@st.composite
def scenarios(draw):
    """Referral tree (parent index per account) and orders on it."""
    size = draw(st.integers(min_value=1, max_value=8))
    parents = [
        draw(st.one_of(st.none(), st.integers(min_value=0, max_value=i - 1)))
        if i > 0
        else None
        for i in range(size)
    ]
    orders = draw(
        st.lists(
            st.tuples(st.integers(min_value=0, max_value=size - 1), line_items),
            min_size=1,
            max_size=6,
        )
    )
    return parents, orders


async def run_scenario(parents, orders) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        engine = sqlite_engine(Path(tmp) / "property.db")
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            session_maker = async_sessionmaker(
                bind=engine, class_=AsyncSession, expire_on_commit=False
            )
            async with session_maker() as session:
                accounts = []
                for i, parent in enumerate(parents):
                    referrer = accounts[parent] if parent is not None else None
                    accounts.append(
                        await add_account(session, f"P{i}", referrer=referrer)
                    )

                order_objects = []
                for buyer_index, items in orders:
                    order_objects.append(
                        await add_order(
                            session,
                            accounts[buyer_index].id,
                            items=[
                                (str(price), str(cost) if cost is not None else None, qty)
                                for price, cost, qty in items
                            ],
                        )
                    )
                await session.commit()

                distributor = CommissionDistributor(
                    session,
                    company_margin_share=COMPANY_SHARE,
                    min_payout=Decimal("0.10"),
                )
                for order in order_objects:
                    result = await distributor.distribute(order)
                    remaining = max(result.margin, Decimal("0")) * (1 - COMPANY_SHARE)
                    assert result.total_credited <= remaining
                    assert result.buyer_cashback >= 0
                    assert all(p.amount >= Decimal("0.10") for p in result.payouts)

                discrepancies = await LedgerAuditService(session).find_discrepancies()
                assert discrepancies == []
        finally:
            await engine.dispose()


class TestConservation:
    """balance == sum(ledger) after any sequence of distributions."""

    @pytest.mark.slow
    @settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    @given(scenario=scenarios())
    def test_balances_match_ledger(self, scenario):
        """Random trees and orders never break conservation."""
        parents, orders = scenario
        asyncio.run(run_scenario(parents, orders))
