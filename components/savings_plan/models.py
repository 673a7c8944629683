"""Savings plan and deposit models for the database."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Numeric, Enum as SQLEnum
from sqlalchemy.orm import relationship

from components.core.database import Base


class PeriodUnit(str, enum.Enum):
    """Recurrence granularity of a plan's deposits."""
    WEEK = "week"
    FORTNIGHT = "fortnight"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class PlanStatus(str, enum.Enum):
    """Lifecycle status of a savings plan."""
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class DepositStatus(str, enum.Enum):
    """Status of a single scheduled deposit."""
    PENDING = "pending"
    COMPLETED = "completed"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class SavingsPlan(Base):
    """Savings plan holding the target, schedule and progress."""
    __tablename__ = "savings_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # Target amount
    period = Column(SQLEnum(PeriodUnit, values_callable=_values), nullable=False)
    total_periods = Column(Integer, nullable=False)
    completed_periods = Column(Integer, nullable=False, default=0)
    amount_per_period = Column(Numeric(12, 2), nullable=False)
    deposited_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    status = Column(
        SQLEnum(PlanStatus, values_callable=_values),
        nullable=False,
        default=PlanStatus.ACTIVE,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="savings_plans")
    deposits = relationship(
        "Deposit",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Deposit.date",
    )


class Deposit(Base):
    """One scheduled or completed payment against a savings plan."""
    __tablename__ = "deposits"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("savings_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    scheduled_amount = Column(Numeric(12, 2), nullable=False)
    # Amount to pay while pending, amount actually paid once completed
    deposited_amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(
        SQLEnum(DepositStatus, values_callable=_values),
        nullable=False,
        default=DepositStatus.PENDING,
    )
    # Plan state before a confirmation that completed or extended the plan,
    # NULL otherwise; reset uses it to restore the schedule
    absorbed_amount = Column(Numeric(12, 2), nullable=True)
    prior_total_periods = Column(Integer, nullable=True)
    prior_end_date = Column(Date, nullable=True)

    # Relationships
    plan = relationship("SavingsPlan", back_populates="deposits")
