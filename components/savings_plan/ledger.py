"""Plan ledger: derived quantities and schedule-changing plan mutations.

Everything here works on a plan already loaded (and locked) by the caller.
Nothing commits; the reconciliation engine owns the transaction.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from components.core.exceptions import ValidationError
from components.savings_plan import calendar
from components.savings_plan.deposits import DepositQueue
from components.savings_plan.models import SavingsPlan, PlanStatus
from components.savings_plan.money import to_money, split_evenly

logger = logging.getLogger(__name__)

# action -> (allowed source statuses, resulting status)
STATUS_ACTIONS = {
    "pause": ({PlanStatus.ACTIVE}, PlanStatus.PAUSED),
    "resume": ({PlanStatus.PAUSED}, PlanStatus.ACTIVE),
    "terminate": ({PlanStatus.ACTIVE, PlanStatus.PAUSED}, PlanStatus.CANCELLED),
}


def remaining_amount(plan: SavingsPlan) -> Decimal:
    return to_money(plan.amount) - to_money(plan.deposited_amount)


def remaining_periods(plan: SavingsPlan) -> int:
    return plan.total_periods - plan.completed_periods


def recompute_amount_per_period(amount: Decimal, periods: int) -> Optional[Decimal]:
    """Even share of ``amount`` per period, None when no periods are left."""
    if periods <= 0:
        return None
    return to_money(to_money(amount) / periods)


class PlanLedger:
    """Validates and applies schedule-changing mutations of a plan."""

    def __init__(self, session: AsyncSession, queue: Optional[DepositQueue] = None):
        self.session = session
        self.queue = queue or DepositQueue(session)

    async def next_due_date(self, plan: SavingsPlan) -> date:
        """First slot after the last completed deposit, or the plan start."""
        last = await self.queue.last_completed(plan.id)
        if last is None:
            return plan.start_date
        return calendar.advance(last.date, plan.period, 1)

    async def edit(
        self,
        plan: SavingsPlan,
        new_amount: Optional[Decimal],
        new_remaining_periods: Optional[int],
        new_end_date: Optional[date],
    ) -> bool:
        """
        Change the target and/or remaining periods of a plan.

        Returns True when the pending deposits were regenerated, False on the
        unchanged fast path.
        """
        if plan.status in (PlanStatus.CANCELLED, PlanStatus.COMPLETED):
            raise ValidationError(f"Cannot edit a {plan.status.value} savings plan")

        new_amount = to_money(plan.amount if new_amount is None else new_amount)
        if new_remaining_periods is None:
            new_remaining_periods = remaining_periods(plan)

        if new_amount == to_money(plan.amount) and new_remaining_periods == remaining_periods(plan):
            logger.debug("Plan %s schedule unchanged, skipping regeneration", plan.id)
            return False

        if new_remaining_periods < 1:
            raise ValidationError("remaining_periods must be at least 1")
        if new_amount <= to_money(plan.deposited_amount):
            raise ValidationError("New total amount must exceed the amount already deposited")

        end_date = new_end_date or plan.end_date
        start = await self.next_due_date(plan)
        dates = calendar.generate_schedule(start, end_date, plan.period, new_remaining_periods)
        if len(dates) != new_remaining_periods:
            raise ValidationError(
                f"End date {end_date.isoformat()} leaves room for {len(dates)} of "
                f"{new_remaining_periods} remaining periods"
            )

        plan.amount = new_amount
        remaining = remaining_amount(plan)
        amounts = split_evenly(remaining, new_remaining_periods)

        await self.queue.delete_pending(plan.id)
        await self.queue.bulk_create(plan.id, plan.user_id, dates, amounts)
        await self.queue.forget_reconciliations(plan.id)

        plan.total_periods = plan.completed_periods + new_remaining_periods
        plan.amount_per_period = amounts[0]
        plan.end_date = dates[-1]
        logger.info(
            "Plan %s rescheduled: %s remaining over %s periods",
            plan.id, remaining, new_remaining_periods,
        )
        return True

    async def set_status(self, plan: SavingsPlan, action: str, today: Optional[date] = None) -> SavingsPlan:
        """Apply a lifecycle action (pause, resume, terminate) to the plan."""
        if action not in STATUS_ACTIONS:
            raise ValidationError(f"Unknown status action: {action!r}")
        allowed, target = STATUS_ACTIONS[action]
        if plan.status not in allowed:
            raise ValidationError(f"Cannot {action} a {plan.status.value} savings plan")

        if action == "resume":
            await self._regenerate_from(plan, today or date.today())

        plan.status = target
        logger.info("Plan %s status changed to %s", plan.id, target.value)
        return plan

    async def restore_tail(self, plan: SavingsPlan) -> Optional[Decimal]:
        """
        Bring the pending deposits back to ``remaining_periods`` slots.

        Existing pending deposits are kept; missing slots are appended one
        period apart after the latest of them and surplus slots are dropped
        from the end. The remaining amount is then spread over the tail and
        ``end_date`` is moved out if the tail runs past it. Returns the new
        per-period amount, None when nothing is left to schedule.
        """
        periods = remaining_periods(plan)
        pending = await self.queue.pending(plan.id)
        if periods <= 0 or not pending:
            return None

        added = []
        if len(pending) > periods:
            for deposit in pending[periods:]:
                await self.session.delete(deposit)
        elif len(pending) < periods:
            last = pending[-1].date
            dates = [calendar.advance(last, plan.period, k) for k in range(1, periods - len(pending) + 1)]
            added = await self.queue.bulk_create(
                plan.id, plan.user_id, dates, [Decimal("0.00")] * len(dates)
            )

        per_period = await self.queue.rebalance_pending(plan.id, remaining_amount(plan))
        for deposit in added:
            deposit.scheduled_amount = deposit.deposited_amount
        tail_end = max(d.date for d in await self.queue.pending(plan.id))
        if tail_end > plan.end_date:
            plan.end_date = tail_end
        return per_period

    async def _regenerate_from(self, plan: SavingsPlan, start: date) -> None:
        """Replace pending deposits with a fresh schedule starting at ``start``."""
        periods = remaining_periods(plan)
        if periods <= 0:
            return
        end = calendar.advance(start, plan.period, periods)
        dates = calendar.generate_schedule(start, end, plan.period, periods)
        amounts = split_evenly(remaining_amount(plan), len(dates))

        await self.queue.delete_pending(plan.id)
        await self.queue.bulk_create(plan.id, plan.user_id, dates, amounts)
        await self.queue.forget_reconciliations(plan.id)

        plan.amount_per_period = amounts[0]
        plan.end_date = dates[-1]
