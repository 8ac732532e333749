"""
Test configuration and fixtures for the ledger tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TOKEN_BLACKLIST_ENABLED", "false")

import pytest
from typing import AsyncGenerator
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.core.database import Base, get_db
from app.core.dependencies import get_current_user_id
from app.modules.accounts.models import Account, AccountType, AccountStatusEnum
from app.modules.categories.services import CategoryService
from app.modules.transactions.models import Transaction
from main import app

USER_ID = 1
OTHER_USER_ID = 2


# ============================================================
# Database Fixtures
# ============================================================

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for each test"""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated test client with database override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(client) -> AsyncClient:
    """Test client acting as USER_ID"""
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    return client


# ============================================================
# Ledger Fixtures
# ============================================================

@pytest.fixture
async def categories(db_session):
    """Seed the predefined categories"""
    await CategoryService.init_default_categories(db_session)


@pytest.fixture
def make_account(db_session):
    """Factory for accounts inserted directly into the database"""

    async def _make_account(
        balance="0",
        account_type: AccountType = AccountType.BANK,
        limit=None,
        name: str = "Savings",
        user_id: int = USER_ID,
        status: AccountStatusEnum = AccountStatusEnum.ACTIVE
    ) -> Account:
        account = Account(
            user_id=user_id,
            account_name=name,
            account_type=account_type,
            currency="₹",
            balance=Decimal(balance),
            initial_balance=Decimal(balance),
            limit=Decimal(limit) if limit is not None else None,
            is_default=False,
            status=status
        )
        db_session.add(account)
        await db_session.commit()
        await db_session.refresh(account)
        return account

    return _make_account


@pytest.fixture
def balance_of(db_session):
    """Current committed balance; safe after a rolled back unit"""

    async def _balance_of(account: Account) -> Decimal:
        await db_session.refresh(account)
        return account.balance

    return _balance_of


@pytest.fixture
def transaction_count(db_session):
    """Number of persisted transaction rows"""

    async def _count() -> int:
        result = await db_session.execute(select(func.count(Transaction.id)))
        return result.scalar_one()

    return _count
