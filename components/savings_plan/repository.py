"""Repository for savings plan operations."""

import logging
from decimal import Decimal
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.exceptions import NotFoundError, PersistenceError, ValidationError
from components.savings_plan import calendar, schemas
from components.savings_plan.deposits import DepositQueue
from components.savings_plan.models import Deposit, SavingsPlan, PlanStatus
from components.savings_plan.money import to_money, split_evenly

logger = logging.getLogger(__name__)


class SavingsPlanRepository:
    """Repository for savings plan operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session
        self.queue = DepositQueue(session)

    async def create(self, user_id: int, plan_in: schemas.SavingsPlanCreate) -> SavingsPlan:
        """
        Create a plan together with its full deposit schedule.

        The schedule may come out shorter than ``total_periods`` when the end
        date is reached first; the plan then counts only the generated slots.
        """
        dates = calendar.generate_schedule(
            plan_in.start_date, plan_in.end_date, plan_in.period, plan_in.total_periods
        )
        if not dates:
            raise ValidationError("Could not build a deposit schedule from the given dates and period")
        if len(dates) < plan_in.total_periods:
            logger.warning(
                "Schedule for %r truncated to %s of %s periods by end date %s",
                plan_in.name, len(dates), plan_in.total_periods, plan_in.end_date,
            )

        amount = to_money(plan_in.amount)
        amounts = split_evenly(amount, len(dates))

        plan = SavingsPlan(
            user_id=user_id,
            name=plan_in.name,
            description=plan_in.description,
            start_date=plan_in.start_date,
            end_date=plan_in.end_date,
            amount=amount,
            period=calendar.parse_period(plan_in.period),
            total_periods=len(dates),
            completed_periods=0,
            amount_per_period=amounts[0],
            deposited_amount=Decimal("0.00"),
            status=PlanStatus.ACTIVE,
        )
        try:
            self.session.add(plan)
            await self.session.flush()
            await self.queue.bulk_create(plan.id, user_id, dates, amounts)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to create savings plan for user %s", user_id)
            raise PersistenceError("Failed to create savings plan") from e

        await self.session.refresh(plan)
        logger.info("Created savings plan %s with %s deposits", plan.id, len(dates))
        return plan

    async def get(self, plan_id: int, user_id: int, for_update: bool = False) -> SavingsPlan:
        """Get a plan owned by the user or raise NotFoundError."""
        query = (
            select(SavingsPlan)
            .where(SavingsPlan.id == plan_id, SavingsPlan.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        plan = result.scalar_one_or_none()
        if plan is None:
            raise NotFoundError(f"Savings plan {plan_id} not found")
        return plan

    async def get_all(self, user_id: int) -> List[SavingsPlan]:
        """Get all plans of the user, newest first."""
        result = await self.session.execute(
            select(SavingsPlan)
            .where(SavingsPlan.user_id == user_id)
            .order_by(SavingsPlan.created_at.desc(), SavingsPlan.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, plan_id: int, user_id: int) -> None:
        """Delete a plan; its deposits go with it."""
        plan = await self.get(plan_id, user_id)
        try:
            await self.session.execute(delete(Deposit).where(Deposit.plan_id == plan.id))
            await self.session.delete(plan)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to delete savings plan %s", plan_id)
            raise PersistenceError("Failed to delete savings plan") from e
        logger.info("Deleted savings plan %s", plan_id)
