"""Repository for account book operations."""

from typing import List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from components.account_book.models import AccountBook
from components.account_book.schemas import AccountBookCreate
from components.core.exceptions import NotFoundError
from components.transaction.models import Transaction


class AccountBookRepository:
    """Repository for account book operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def create(self, user_id: int, book: AccountBookCreate) -> AccountBook:
        """Create a new account book."""
        db_book = AccountBook(user_id=user_id, **book.model_dump())
        self.session.add(db_book)
        await self.session.commit()
        await self.session.refresh(db_book)
        return db_book

    async def get(self, book_id: int, user_id: int) -> AccountBook:
        """Get account book by ID or raise NotFoundError."""
        result = await self.session.execute(
            select(AccountBook).where(AccountBook.id == book_id, AccountBook.user_id == user_id)
        )
        book = result.scalar_one_or_none()
        if book is None:
            raise NotFoundError(f"Account book {book_id} not found")
        return book

    async def get_all(self, user_id: int) -> List[AccountBook]:
        """Get all account books of the user, newest first."""
        result = await self.session.execute(
            select(AccountBook)
            .where(AccountBook.user_id == user_id)
            .order_by(AccountBook.created_at.desc(), AccountBook.id.desc())
        )
        return list(result.scalars().all())

    async def update(self, book_id: int, user_id: int, book: AccountBookCreate) -> AccountBook:
        """Update account book by ID."""
        db_book = await self.get(book_id, user_id)
        db_book.name = book.name
        db_book.tag = book.tag
        db_book.description = book.description
        await self.session.commit()
        await self.session.refresh(db_book)
        return db_book

    async def delete(self, book_id: int, user_id: int) -> None:
        """Delete account book and its transactions."""
        db_book = await self.get(book_id, user_id)
        await self.session.execute(delete(Transaction).where(Transaction.account_book_id == db_book.id))
        await self.session.delete(db_book)
        await self.session.commit()
