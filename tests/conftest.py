"""Pytest configuration and shared fixtures."""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from components.core.database import Base, DatabaseManager
from components.core.security import get_password_hash
from components.savings_plan.models import (
    Deposit,
    DepositStatus,
    PeriodUnit,
    PlanStatus,
    SavingsPlan,
)
from components.savings_plan.reconciliation import PlanLockRegistry, ReconciliationEngine
from components.user.models import User
from restapi.router import create_app

# StaticPool keeps the in-memory database on one shared connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    # Import all models to ensure they're registered with Base.metadata
    import components.core.init_db  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign keys for SQLite."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
def app(test_engine):
    """Application wired to the test engine."""
    return create_app(DatabaseManager(url=TEST_DATABASE_URL, engine=test_engine))


@pytest_asyncio.fixture(scope="function")
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _register(client: AsyncClient, email: str = "saver@example.com") -> dict:
    response = await client.post(
        "/api/register",
        json={"email": email, "username": email.split("@")[0], "password": "password123"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def register(async_client: AsyncClient):
    """Register a user by email and return its bearer headers."""

    async def _register_email(email: str = "saver@example.com") -> dict:
        return await _register(async_client, email)

    return _register_email


@pytest_asyncio.fixture
async def auth_headers(register) -> dict:
    """Bearer headers of a freshly registered user."""
    return await register()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(
        email="test@example.com",
        username="test",
        password=get_password_hash("password123"),
        registration_date=date(2025, 1, 1),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def engine(db_session: AsyncSession) -> ReconciliationEngine:
    """Reconciliation engine over the test session."""
    return ReconciliationEngine(db_session, PlanLockRegistry())


@pytest.fixture
def make_plan(db_session: AsyncSession, test_user: User):
    """
    Build a monthly plan with its deposits directly in the database.

    ``completed`` leading deposits are stored as already paid at the
    per-period amount.
    """

    async def _make_plan(
        amount: str = "1200.00",
        total_periods: int = 12,
        completed: int = 0,
        start: date = date(2025, 1, 1),
    ) -> SavingsPlan:
        target = Decimal(amount)
        per_period = (target / total_periods).quantize(Decimal("0.01"))
        dates = [date(start.year + (start.month - 1 + i) // 12, (start.month - 1 + i) % 12 + 1, start.day)
                 for i in range(total_periods)]
        plan = SavingsPlan(
            user_id=test_user.id,
            name="Holiday",
            description="Trip fund",
            start_date=dates[0],
            end_date=dates[-1],
            amount=target,
            period=PeriodUnit.MONTH,
            total_periods=total_periods,
            completed_periods=completed,
            amount_per_period=per_period,
            deposited_amount=per_period * completed,
            status=PlanStatus.ACTIVE,
        )
        db_session.add(plan)
        await db_session.flush()
        for index, deposit_date in enumerate(dates):
            db_session.add(Deposit(
                plan_id=plan.id,
                user_id=test_user.id,
                scheduled_amount=per_period,
                deposited_amount=per_period,
                date=deposit_date,
                status=DepositStatus.COMPLETED if index < completed else DepositStatus.PENDING,
            ))
        await db_session.commit()
        await db_session.refresh(plan)
        return plan

    return _make_plan
