"""Pydantic schemas for savings plan data validation."""

import datetime as dt
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from components.savings_plan.models import DepositStatus, PeriodUnit, PlanStatus


class SavingsPlanCreate(BaseModel):
    """Schema for plan creation."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    start_date: dt.date
    end_date: dt.date
    amount: Decimal = Field(..., gt=0)
    period: str
    total_periods: int = Field(..., ge=1, alias="totalPeriods")
    # Derived from amount and the generated schedule, accepted for compatibility
    amount_per_period: Optional[Decimal] = Field(None, alias="amountPerPeriod")


class SavingsPlanUpdate(BaseModel):
    """Schema for plan edit; amounts and periods drive rescheduling."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    remaining_amount: Optional[Decimal] = None
    remaining_periods: Optional[int] = Field(None, ge=1)
    new_total_amount: Optional[Decimal] = Field(None, gt=0)
    new_end_date: Optional[dt.date] = None


class SavingsPlanStatusUpdate(BaseModel):
    """Schema for lifecycle transitions."""
    status: Literal["pause", "resume", "terminate"]


class Deposit(BaseModel):
    """Schema for deposit response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    plan_id: int
    scheduled_amount: Decimal
    deposited_amount: Decimal
    date: dt.date
    status: DepositStatus


class SavingsPlan(BaseModel):
    """Schema for plan response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    start_date: dt.date
    end_date: dt.date
    amount: Decimal
    period: PeriodUnit
    total_periods: int
    completed_periods: int
    amount_per_period: Decimal
    deposited_amount: Decimal
    status: PlanStatus


class SavingsPlanDetail(SavingsPlan):
    """Schema for plan response including its deposits."""
    deposits: List[Deposit] = []


class DepositConfirm(BaseModel):
    """Schema for deposit confirmation.

    ``editableAmount`` is what the user actually paid and wins over
    ``deposited_amount`` when present.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    plan_id: Optional[int] = None
    deposited_amount: Optional[Decimal] = None
    editable_amount: Optional[Decimal] = Field(None, alias="editableAmount")

    def paid_amount(self) -> Optional[Decimal]:
        if self.editable_amount is not None:
            return self.editable_amount
        return self.deposited_amount


class DepositReset(BaseModel):
    """Schema for undoing a confirmation."""
    id: Optional[int] = None
    plan_id: Optional[int] = None
    deposited_amount: Optional[Decimal] = None
