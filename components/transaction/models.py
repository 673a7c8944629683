"""Transaction model for the database."""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Numeric, Enum as SQLEnum
from sqlalchemy.orm import relationship

from components.core.database import Base


class TransactionType(str, enum.Enum):
    """Direction of money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(Base):
    """Income or expense recorded in an account book."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_book_id = Column(Integer, ForeignKey("account_books.id", ondelete="CASCADE"), nullable=False)
    account_book_name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    type = Column(SQLEnum(TransactionType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    account_book = relationship("AccountBook", back_populates="transactions")
