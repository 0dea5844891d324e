"""Pytest configuration and shared fixtures for all tests."""

import itertools
import os
import sys
import tempfile
from pathlib import Path

# Minimal environment for settings, set before any app import
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / 'commissions_test.db'}",
)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("REDIS_HOST", "localhost")

# Project root on PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.models import Account, Base, Order, OrderItem, OrderStatus
from app.services.referral.chain_manager import ReferralChainManager

_order_numbers = itertools.count(1)
_referral_codes = itertools.count(1)


def sqlite_engine(db_path: Path):
    """
    File-backed SQLite engine.

    Every session gets its own connection; concurrent writers wait on
    the database lock instead of failing.
    """
    return create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh database with all tables for each test."""
    engine = sqlite_engine(tmp_path / "commissions.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def session(session_maker):
    """Session for arranging and asserting."""
    async with session_maker() as session:
        yield session


async def add_account(
    session: AsyncSession, name: str, referrer: Account | None = None
) -> Account:
    """
    Create an account, with its upline snapshot when it has a referrer.

    Flushes but does not commit.
    """
    number = next(_referral_codes)
    account = Account(
        name=name,
        email=f"{name.lower()}.{number}@example.com",
        referral_code=f"TEST{number:06d}",
        referrer_id=referrer.id if referrer else None,
    )
    session.add(account)
    await session.flush()

    if referrer is not None:
        await ReferralChainManager(session).build_upline(account.id, referrer.id)

    return account


async def add_order(
    session: AsyncSession,
    buyer_id: int,
    items: list[tuple[str, str | None, int]] | None = None,
    status: OrderStatus = OrderStatus.PAID,
) -> Order:
    """
    Create an order with (unit_price, unit_cost, quantity) items.

    Default is a single item with a margin of exactly 1000.
    Flushes but does not commit.
    """
    if items is None:
        items = [("5000", "4000", 1)]

    order = Order(
        order_number=f"ORD-{next(_order_numbers):06d}",
        buyer_id=buyer_id,
        status=status.value,
        total=sum(
            (Decimal(price) * qty for price, _, qty in items), Decimal("0")
        ),
        items=[
            OrderItem(
                product_name=f"Product {i}",
                unit_price=Decimal(price),
                unit_cost=Decimal(cost) if cost is not None else None,
                quantity=qty,
            )
            for i, (price, cost, qty) in enumerate(items, start=1)
        ],
    )
    session.add(order)
    await session.flush()
    return order


@pytest.fixture
def make_account():
    """Account factory: ``await make_account(session, name, referrer=None)``."""
    return add_account


@pytest.fixture
def make_order():
    """Order factory: ``await make_order(session, buyer_id, items, status)``."""
    return add_order
