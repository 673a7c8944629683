"""Transaction and summary endpoints for the API."""

import io
from typing import List
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.core.schemas import Message
from components.transaction import schemas
from components.transaction.repository import TransactionRepository
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
    responses={404: {"description": "Not found"}},
)

summary_router = APIRouter(tags=["summaries"])


@router.post("", response_model=schemas.Transaction, status_code=201)
async def create_transaction(
    txn: schemas.TransactionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Record a new income or expense."""
    return await TransactionRepository(db).create(current_user.id, txn)


@router.get("", response_model=List[schemas.Transaction])
async def read_transactions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get transactions of the current user."""
    return await TransactionRepository(db).get_all(current_user.id)


@router.post("/import", response_model=schemas.TransactionUploadResponse)
async def upload_transactions(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Import transactions from a tab separated CSV file.

    The file must have the columns date (YYYY-MM-DD), amount, type
    (income/expense), category, description and account_book_id. All rows are
    validated before anything is stored.
    """
    if not file.filename or not file.filename.endswith('.csv'):
        return schemas.TransactionUploadResponse(
            success=False,
            message="Invalid file format. Only CSV files (.csv) are supported."
        )

    file_content = await file.read()
    success, message, errors, imported = await TransactionRepository(db).upload_transactions_from_csv(
        current_user.id, io.BytesIO(file_content)
    )
    if not success:
        return schemas.TransactionUploadResponse(
            success=False,
            message=message,
            errors=[schemas.TransactionUploadError(**error) for error in errors],
        )
    return schemas.TransactionUploadResponse(success=True, message=message, imported=imported)


@router.put("/{txn_id}", response_model=schemas.Transaction)
async def update_transaction(
    txn_id: int,
    txn: schemas.TransactionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a transaction."""
    return await TransactionRepository(db).update(txn_id, current_user.id, txn)


@router.delete("/{txn_id}", response_model=Message)
async def delete_transaction(
    txn_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a transaction."""
    await TransactionRepository(db).delete(txn_id, current_user.id)
    return Message(message="Deleted")


@summary_router.get("/account-books-summary", response_model=List[schemas.AccountBookSummary])
async def get_account_book_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Income and expense totals per account book."""
    return await TransactionRepository(db).get_account_book_summary(current_user.id)


@summary_router.get("/monthly-summary", response_model=List[schemas.MonthlySummary])
async def get_monthly_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Income and expense totals per month."""
    return await TransactionRepository(db).get_monthly_summary(current_user.id)


@summary_router.get("/top-categories", response_model=List[schemas.CategoryTotal])
async def get_top_categories(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Five expense categories with the largest totals."""
    return await TransactionRepository(db).get_expense_categories(current_user.id, limit=5)


@summary_router.get("/category-ratio", response_model=List[schemas.CategoryRatio])
async def get_category_ratio(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Share of each expense category in all expenses."""
    return await TransactionRepository(db).get_category_ratio(current_user.id)
