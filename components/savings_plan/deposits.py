"""Deposit queue: the scheduled deposits of a plan."""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import select, delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.exceptions import NotFoundError
from components.savings_plan.models import Deposit, DepositStatus
from components.savings_plan.money import split_evenly


class DepositQueue:
    """Creates, prunes and rebalances deposit rows. Never commits."""

    def __init__(self, session: AsyncSession):
        """Initialize queue with database session."""
        self.session = session

    async def bulk_create(
        self,
        plan_id: int,
        user_id: int,
        dates: Sequence[date],
        amounts: Sequence[Decimal],
    ) -> List[Deposit]:
        """Insert one pending deposit per date carrying the matching amount."""
        deposits = [
            Deposit(
                plan_id=plan_id,
                user_id=user_id,
                date=deposit_date,
                scheduled_amount=amount,
                deposited_amount=amount,
                status=DepositStatus.PENDING,
            )
            for deposit_date, amount in zip(dates, amounts)
        ]
        self.session.add_all(deposits)
        await self.session.flush()
        return deposits

    async def delete_pending(self, plan_id: int) -> None:
        """Delete pending deposits of a plan; completed ones are history."""
        await self.session.flush()
        await self.session.execute(
            delete(Deposit)
            .where(Deposit.plan_id == plan_id, Deposit.status == DepositStatus.PENDING)
            .execution_options(synchronize_session="fetch")
        )

    async def forget_reconciliations(self, plan_id: int) -> None:
        """Drop the undo information of confirmed deposits once the schedule is rebuilt."""
        await self.session.flush()
        await self.session.execute(
            update(Deposit)
            .where(Deposit.plan_id == plan_id, Deposit.prior_total_periods.is_not(None))
            .values(absorbed_amount=None, prior_total_periods=None, prior_end_date=None)
            .execution_options(synchronize_session="fetch")
        )

    async def pending(self, plan_id: int) -> List[Deposit]:
        """Pending deposits of a plan ordered by date."""
        await self.session.flush()
        result = await self.session.execute(
            select(Deposit)
            .where(Deposit.plan_id == plan_id, Deposit.status == DepositStatus.PENDING)
            .order_by(Deposit.date, Deposit.id)
        )
        return list(result.scalars().all())

    async def rebalance_pending(self, plan_id: int, remaining_amount: Decimal) -> Optional[Decimal]:
        """
        Spread ``remaining_amount`` evenly over the pending deposits.

        Dates and count are kept. Returns the new per-period amount, or None
        when the plan has no pending deposits.
        """
        deposits = await self.pending(plan_id)
        amounts = split_evenly(remaining_amount, len(deposits))
        for deposit, amount in zip(deposits, amounts):
            deposit.deposited_amount = amount
        return amounts[0] if amounts else None

    async def last_completed(self, plan_id: int) -> Optional[Deposit]:
        """Latest completed deposit of a plan by date."""
        result = await self.session.execute(
            select(Deposit)
            .where(Deposit.plan_id == plan_id, Deposit.status == DepositStatus.COMPLETED)
            .order_by(Deposit.date.desc(), Deposit.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_plan(self, plan_id: int, user_id: int) -> List[Deposit]:
        """All deposits of a plan owned by the user, ordered by date."""
        result = await self.session.execute(
            select(Deposit)
            .where(Deposit.plan_id == plan_id, Deposit.user_id == user_id)
            .order_by(Deposit.date, Deposit.id)
        )
        return list(result.scalars().all())

    async def get(self, deposit_id: int, user_id: int, for_update: bool = False) -> Deposit:
        """Get a deposit owned by the user or raise NotFoundError."""
        query = (
            select(Deposit)
            .where(Deposit.id == deposit_id, Deposit.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        deposit = result.scalar_one_or_none()
        if deposit is None:
            raise NotFoundError(f"Deposit {deposit_id} not found")
        return deposit
