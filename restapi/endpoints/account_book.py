"""Account book endpoints for the API."""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from components.account_book import schemas
from components.account_book.repository import AccountBookRepository
from components.core.init_db import get_db
from components.core.schemas import Message
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/account-books",
    tags=["account books"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=schemas.AccountBook, status_code=201)
async def create_account_book(
    book: schemas.AccountBookCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a new account book."""
    return await AccountBookRepository(db).create(current_user.id, book)


@router.get("", response_model=List[schemas.AccountBook])
async def read_account_books(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get account books of the current user."""
    return await AccountBookRepository(db).get_all(current_user.id)


@router.put("/{book_id}", response_model=schemas.AccountBook)
async def update_account_book(
    book_id: int,
    book: schemas.AccountBookCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update an account book."""
    return await AccountBookRepository(db).update(book_id, current_user.id, book)


@router.delete("/{book_id}", response_model=Message)
async def delete_account_book(
    book_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete an account book with its transactions."""
    await AccountBookRepository(db).delete(book_id, current_user.id)
    return Message(message="Deleted")
