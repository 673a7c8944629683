"""Script to seed demo data into the database.

Run from the project root: python -m scripts.seed_data
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal

from components.account_book.repository import AccountBookRepository
from components.account_book.schemas import AccountBookCreate
from components.core.database import DatabaseManager
from components.core.logging_config import setup_logging
from components.savings_plan.repository import SavingsPlanRepository
from components.savings_plan.schemas import SavingsPlanCreate
from components.transaction.models import TransactionType
from components.transaction.repository import TransactionRepository
from components.transaction.schemas import TransactionCreate
from components.user.repository import UserRepository
from components.user.schemas import UserCreate
import components.core.init_db  # noqa: F401

logger = logging.getLogger(__name__)

DEMO_USERS = [
    UserCreate(email="john@example.com", username="john_doe", password="password123"),
    UserCreate(email="jane@example.com", username="jane_smith", password="password123"),
]


async def seed_user(db, user_in: UserCreate) -> None:
    """Create one demo user with a book, a few transactions and a savings plan."""
    users = UserRepository(db)
    if await users.exists(user_in.email):
        logger.info("User %s already exists, skipping", user_in.email)
        return
    user = await users.create(user_in)

    book = await AccountBookRepository(db).create(
        user.id, AccountBookCreate(name="Household", tag="home", description="Daily costs")
    )
    transactions = TransactionRepository(db)
    for month in range(1, 4):
        await transactions.create(user.id, TransactionCreate(
            account_book_id=book.id,
            amount=Decimal("2500.00"),
            date=date(2025, month, 1),
            type=TransactionType.INCOME,
            category="Salary",
        ))
        await transactions.create(user.id, TransactionCreate(
            account_book_id=book.id,
            amount=Decimal("850.00"),
            date=date(2025, month, 3),
            type=TransactionType.EXPENSE,
            category="Rent",
        ))
        await transactions.create(user.id, TransactionCreate(
            account_book_id=book.id,
            amount=Decimal("120.00") + month * 15,
            date=date(2025, month, 12),
            type=TransactionType.EXPENSE,
            category="Food",
        ))

    plan = await SavingsPlanRepository(db).create(user.id, SavingsPlanCreate(
        name="Summer holiday",
        description="Two weeks at the sea",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 1),
        amount=Decimal("1200.00"),
        period="month",
        total_periods=12,
    ))
    logger.info("Seeded user %s with account book %s and plan %s", user.email, book.id, plan.id)


async def seed_data():
    """Seed demo data into the database."""
    setup_logging()
    db_manager = DatabaseManager()
    db_manager.open()
    try:
        await db_manager.create_all()
        async with db_manager.get_db() as db:
            for user_in in DEMO_USERS:
                await seed_user(db, user_in)
    finally:
        await db_manager.close()


if __name__ == "__main__":
    asyncio.run(seed_data())
