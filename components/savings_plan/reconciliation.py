"""Reconciliation of deposits against their savings plan.

Every mutation of a plan runs inside ``plan_scope``: an in-process lock keyed
by plan id, the plan row loaded ``FOR UPDATE`` and a single commit at the end.
Any failure rolls the whole step back.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.exceptions import PersistenceError, ValidationError
from components.savings_plan import calendar
from components.savings_plan.deposits import DepositQueue
from components.savings_plan.ledger import (
    PlanLedger,
    recompute_amount_per_period,
    remaining_amount,
    remaining_periods,
)
from components.savings_plan.models import Deposit, DepositStatus, PlanStatus, SavingsPlan
from components.savings_plan.money import to_money
from components.savings_plan.repository import SavingsPlanRepository

logger = logging.getLogger(__name__)


class PlanLockRegistry:
    """Hands out one asyncio.Lock per plan id while it is in use."""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def get(self, plan_id: int) -> asyncio.Lock:
        lock = self._locks.get(plan_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[plan_id] = lock
        return lock


class ReconciliationEngine:
    """Confirms and resets deposits and drives plan lifecycle changes."""

    def __init__(self, session: AsyncSession, locks: PlanLockRegistry):
        self.session = session
        self.locks = locks
        self.plans = SavingsPlanRepository(session)
        self.queue = DepositQueue(session)
        self.ledger = PlanLedger(session, self.queue)

    @asynccontextmanager
    async def plan_scope(self, plan_id: int, user_id: int) -> AsyncIterator[SavingsPlan]:
        """Serialize access to one plan and commit or roll back as a unit."""
        async with self.locks.get(plan_id):
            try:
                plan = await self.plans.get(plan_id, user_id, for_update=True)
                yield plan
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.exception("Reconciliation of plan %s failed, rolled back", plan_id)
                raise PersistenceError("Failed to update savings plan") from e
            except Exception:
                await self.session.rollback()
                raise

    async def confirm_deposit(self, deposit_id: int, user_id: int, paid_amount=None) -> SavingsPlan:
        """
        Record a payment for a pending deposit and rebalance the plan.

        paid_amount may differ from the amount scheduled for the slot:
        - paying at least what is left completes the plan (overpayment is
          absorbed into the target, other pending deposits are dropped)
        - underpaying the last slot appends one more deposit for the
          shortfall
        - otherwise the difference is spread over the remaining slots

        Without paid_amount the slot is paid exactly as scheduled.
        """
        deposit = await self.queue.get(deposit_id, user_id)
        async with self.plan_scope(deposit.plan_id, user_id) as plan:
            deposit = await self.queue.get(deposit_id, user_id, for_update=True)
            if deposit.status != DepositStatus.PENDING:
                raise ValidationError(f"Deposit {deposit_id} is already completed")
            if plan.status != PlanStatus.ACTIVE:
                raise ValidationError(f"Cannot confirm deposits of a {plan.status.value} savings plan")

            paid = to_money(deposit.deposited_amount if paid_amount is None else paid_amount)
            if paid < 0:
                raise ValidationError("Deposited amount cannot be negative")

            amount_left = remaining_amount(plan)
            periods_left = remaining_periods(plan)

            deposit.status = DepositStatus.COMPLETED
            deposit.deposited_amount = paid

            if paid >= amount_left:
                await self._complete(plan, deposit, paid, amount_left, periods_left)
            elif periods_left <= 1:
                await self._extend(plan, deposit, paid, amount_left)
            else:
                await self._rebalance_after_payment(plan, paid, amount_left, periods_left)

            logger.info(
                "Confirmed deposit %s of plan %s: paid %s, %s/%s periods, status %s",
                deposit_id, plan.id, paid, plan.completed_periods, plan.total_periods, plan.status.value,
            )
        return plan

    @staticmethod
    def _remember(plan: SavingsPlan, deposit: Deposit, absorbed: Decimal) -> None:
        deposit.absorbed_amount = absorbed
        deposit.prior_total_periods = plan.total_periods
        deposit.prior_end_date = plan.end_date

    @staticmethod
    def _forget(deposit: Deposit) -> None:
        deposit.absorbed_amount = None
        deposit.prior_total_periods = None
        deposit.prior_end_date = None

    async def _complete(
        self, plan: SavingsPlan, deposit: Deposit, paid: Decimal, amount_left: Decimal, periods_left: int
    ) -> None:
        self._remember(plan, deposit, paid - amount_left)
        if periods_left > 1:
            await self.queue.delete_pending(plan.id)
        plan.amount = to_money(plan.amount) + (paid - amount_left)
        plan.completed_periods += 1
        plan.total_periods = plan.completed_periods
        plan.deposited_amount = to_money(plan.deposited_amount) + paid
        plan.status = PlanStatus.COMPLETED

    async def _extend(self, plan: SavingsPlan, deposit: Deposit, paid: Decimal, amount_left: Decimal) -> None:
        self._remember(plan, deposit, Decimal("0.00"))
        shortfall = amount_left - paid
        extra_date = calendar.advance(plan.end_date, plan.period, 1)
        await self.queue.bulk_create(plan.id, plan.user_id, [extra_date], [shortfall])
        plan.end_date = extra_date
        plan.total_periods += 1
        plan.completed_periods += 1
        plan.deposited_amount = to_money(plan.deposited_amount) + paid
        plan.amount_per_period = shortfall

    async def _rebalance_after_payment(
        self, plan: SavingsPlan, paid: Decimal, amount_left: Decimal, periods_left: int
    ) -> None:
        new_remaining = amount_left - paid
        plan.completed_periods += 1
        plan.deposited_amount = to_money(plan.deposited_amount) + paid
        per_period = recompute_amount_per_period(new_remaining, periods_left - 1)
        if per_period is None:
            return
        await self.queue.rebalance_pending(plan.id, new_remaining)
        plan.amount_per_period = per_period

    async def reset_deposit(self, deposit_id: int, user_id: int) -> SavingsPlan:
        """
        Undo a confirmation: the deposit goes back to pending and the plan is rebalanced.

        When that confirmation completed or extended the plan, the target,
        period count and end date it replaced are put back and the pending
        tail is rebuilt to match, unless later confirmations already consumed
        those periods.
        """
        deposit = await self.queue.get(deposit_id, user_id)
        async with self.plan_scope(deposit.plan_id, user_id) as plan:
            deposit = await self.queue.get(deposit_id, user_id, for_update=True)
            if deposit.status != DepositStatus.COMPLETED:
                raise ValidationError(f"Deposit {deposit_id} is not completed")
            if plan.status == PlanStatus.CANCELLED:
                raise ValidationError("Cannot reset deposits of a cancelled savings plan")

            paid = to_money(deposit.deposited_amount)
            deposit.status = DepositStatus.PENDING
            deposit.deposited_amount = to_money(deposit.scheduled_amount)

            plan.completed_periods = max(plan.completed_periods - 1, 0)
            plan.deposited_amount = to_money(plan.deposited_amount) - paid
            if plan.status == PlanStatus.COMPLETED:
                plan.status = PlanStatus.ACTIVE

            if deposit.prior_total_periods is not None and deposit.prior_total_periods > plan.completed_periods:
                plan.amount = to_money(plan.amount) - to_money(deposit.absorbed_amount or 0)
                plan.total_periods = deposit.prior_total_periods
                plan.end_date = deposit.prior_end_date
                per_period = await self.ledger.restore_tail(plan)
            elif remaining_periods(plan) > 0:
                per_period = await self.queue.rebalance_pending(plan.id, remaining_amount(plan))
            else:
                per_period = None
            if per_period is not None:
                plan.amount_per_period = per_period
            self._forget(deposit)

            logger.info(
                "Reset deposit %s of plan %s: %s returned, %s/%s periods",
                deposit_id, plan.id, paid, plan.completed_periods, plan.total_periods,
            )
        return plan

    async def edit_plan(
        self,
        plan_id: int,
        user_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        new_amount=None,
        new_remaining_amount=None,
        new_remaining_periods: Optional[int] = None,
        new_end_date: Optional[date] = None,
    ) -> SavingsPlan:
        """
        Rename and/or reschedule a plan.

        The new target is new_amount, or what is already deposited plus
        new_remaining_amount when only the latter is given.
        """
        async with self.plan_scope(plan_id, user_id) as plan:
            if name is not None:
                plan.name = name
            if description is not None:
                plan.description = description
            if new_amount is None and new_remaining_amount is not None:
                new_amount = to_money(plan.deposited_amount) + to_money(new_remaining_amount)
            await self.ledger.edit(
                plan,
                to_money(new_amount) if new_amount is not None else None,
                new_remaining_periods,
                new_end_date,
            )
        return plan

    async def change_status(self, plan_id: int, user_id: int, action: str, today: Optional[date] = None) -> SavingsPlan:
        """Pause, resume or terminate a plan."""
        async with self.plan_scope(plan_id, user_id) as plan:
            await self.ledger.set_status(plan, action, today=today)
        return plan

