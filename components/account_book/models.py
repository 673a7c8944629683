"""Account book model for the database."""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from components.core.database import Base


class AccountBook(Base):
    """Account book grouping a user's transactions."""
    __tablename__ = "account_books"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    tag = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="account_books")
    transactions = relationship(
        "Transaction", back_populates="account_book", cascade="all, delete-orphan", passive_deletes=True
    )
