"""Pydantic schemas for transaction data validation."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from components.transaction.models import TransactionType


class TransactionBase(BaseModel):
    """Base transaction schema."""
    account_book_id: int
    amount: Decimal = Field(..., gt=0)
    date: dt.date
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


class TransactionCreate(TransactionBase):
    """Schema for transaction creation."""
    pass


class Transaction(TransactionBase):
    """Schema for transaction response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_book_name: str
    created_at: dt.datetime


class AccountBookSummary(BaseModel):
    """Income and expense totals of one account book."""
    account_book_name: str
    total_income: Decimal
    total_expense: Decimal


class MonthlySummary(BaseModel):
    """Income and expense totals of one month (YYYY-MM)."""
    month: str
    total_income: Decimal
    total_expense: Decimal


class CategoryTotal(BaseModel):
    """Expense total of one category."""
    category: str
    total: Decimal


class CategoryRatio(CategoryTotal):
    """Expense total of one category with its share of all expenses."""
    percentage: float


class TransactionUploadError(BaseModel):
    """Schema for transaction upload error."""
    row: int
    message: str


class TransactionUploadResponse(BaseModel):
    """Schema for transaction upload response."""
    success: bool
    message: str
    imported: int = 0
    errors: Optional[List[TransactionUploadError]] = None
