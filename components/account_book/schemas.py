"""Pydantic schemas for account book data validation."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class AccountBookBase(BaseModel):
    """Base account book schema."""
    name: str = Field(..., min_length=1, max_length=100)
    tag: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None


class AccountBookCreate(AccountBookBase):
    """Schema for account book creation."""
    pass


class AccountBook(AccountBookBase):
    """Schema for account book response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
