"""Savings plan and deposit endpoints for the API."""

from typing import List
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.core.schemas import Message
from components.savings_plan import schemas
from components.savings_plan.deposits import DepositQueue
from components.savings_plan.models import SavingsPlan
from components.savings_plan.reconciliation import ReconciliationEngine
from components.savings_plan.repository import SavingsPlanRepository
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/savings-plans",
    tags=["savings plans"],
    responses={404: {"description": "Not found"}},
)

deposit_router = APIRouter(
    prefix="/deposits",
    tags=["deposits"],
    responses={404: {"description": "Not found"}},
)


def get_engine(request: Request, db: AsyncSession = Depends(get_db)) -> ReconciliationEngine:
    """Reconciliation engine bound to the request session and the app's plan locks."""
    return ReconciliationEngine(db, request.app.state.plan_locks)


async def _plan_detail(db: AsyncSession, plan: SavingsPlan) -> schemas.SavingsPlanDetail:
    deposits = await DepositQueue(db).list_for_plan(plan.id, plan.user_id)
    return schemas.SavingsPlanDetail(
        **schemas.SavingsPlan.model_validate(plan).model_dump(),
        deposits=[schemas.Deposit.model_validate(d) for d in deposits],
    )


@router.post("", response_model=schemas.SavingsPlanDetail, status_code=201)
async def create_savings_plan(
    plan_in: schemas.SavingsPlanCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a savings plan with its full deposit schedule."""
    plan = await SavingsPlanRepository(db).create(current_user.id, plan_in)
    return await _plan_detail(db, plan)


@router.get("", response_model=List[schemas.SavingsPlan])
async def read_savings_plans(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get savings plans of the current user."""
    return await SavingsPlanRepository(db).get_all(current_user.id)


@router.get("/{plan_id}", response_model=schemas.SavingsPlanDetail)
async def read_savings_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get one savings plan with its deposits."""
    plan = await SavingsPlanRepository(db).get(plan_id, current_user.id)
    return await _plan_detail(db, plan)


@router.put("/{plan_id}", response_model=schemas.SavingsPlanDetail)
async def update_savings_plan(
    plan_id: int,
    plan_in: schemas.SavingsPlanUpdate,
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user)
):
    """
    Edit a savings plan.

    Pending deposits are regenerated only when the total amount or the number
    of remaining periods changes.
    """
    plan = await engine.edit_plan(
        plan_id,
        current_user.id,
        name=plan_in.name,
        description=plan_in.description,
        new_amount=plan_in.new_total_amount,
        new_remaining_amount=plan_in.remaining_amount,
        new_remaining_periods=plan_in.remaining_periods,
        new_end_date=plan_in.new_end_date,
    )
    return await _plan_detail(db, plan)


@router.patch("/{plan_id}", response_model=schemas.SavingsPlanDetail)
async def change_savings_plan_status(
    plan_id: int,
    body: schemas.SavingsPlanStatusUpdate,
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user)
):
    """Pause, resume or terminate a savings plan."""
    plan = await engine.change_status(plan_id, current_user.id, body.status)
    return await _plan_detail(db, plan)


@router.delete("/{plan_id}", response_model=Message)
async def delete_savings_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a savings plan and its deposits."""
    await SavingsPlanRepository(db).delete(plan_id, current_user.id)
    return Message(message="Deleted")


@deposit_router.get("", response_model=List[schemas.Deposit])
async def read_deposits(
    savingsplanid: int = Query(..., description="Savings plan to list deposits for"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get all deposits of a savings plan ordered by date."""
    plan = await SavingsPlanRepository(db).get(savingsplanid, current_user.id)
    return await DepositQueue(db).list_for_plan(plan.id, current_user.id)


@deposit_router.put("/reset/{deposit_id}", response_model=schemas.SavingsPlanDetail)
async def reset_deposit(
    deposit_id: int,
    body: schemas.DepositReset = None,
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user)
):
    """Undo the confirmation of a deposit."""
    plan = await engine.reset_deposit(deposit_id, current_user.id)
    return await _plan_detail(db, plan)


@deposit_router.put("/{deposit_id}", response_model=schemas.SavingsPlanDetail)
async def confirm_deposit(
    deposit_id: int,
    body: schemas.DepositConfirm,
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user)
):
    """
    Confirm a deposit as paid.

    ``editableAmount`` records a payment different from the scheduled one;
    the plan is rebalanced, extended or completed accordingly.
    """
    plan = await engine.confirm_deposit(deposit_id, current_user.id, paid_amount=body.paid_amount())
    return await _plan_detail(db, plan)
