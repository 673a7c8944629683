"""Tests for plan ledger arithmetic and schedule edits."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from components.core.exceptions import ValidationError
from components.savings_plan.deposits import DepositQueue
from components.savings_plan.ledger import (
    PlanLedger,
    recompute_amount_per_period,
    remaining_amount,
    remaining_periods,
)
from components.savings_plan.models import Deposit, DepositStatus, PlanStatus
from components.savings_plan.money import split_evenly, to_money


def _snapshot(deposits):
    return [(d.id, d.date, d.scheduled_amount, d.deposited_amount, d.status) for d in deposits]


class TestMoney:

    def test_to_money_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(3) == Decimal("3.00")
        assert to_money(0.1) == Decimal("0.10")

    def test_split_evenly_keeps_total(self):
        amounts = split_evenly(Decimal("650"), 6)
        assert amounts == [Decimal("108.33")] * 4 + [Decimal("108.34")] * 2
        assert sum(amounts) == Decimal("650.00")

    @pytest.mark.parametrize("total,count", [
        ("0.20", 12),
        ("0.05", 12),
        ("0.00", 3),
        ("1.00", 7),
        ("99.99", 13),
    ])
    def test_split_evenly_small_totals_over_many_slots(self, total, count):
        amounts = split_evenly(Decimal(total), count)
        assert len(amounts) == count
        assert sum(amounts) == Decimal(total)
        assert all(a >= 0 for a in amounts)
        assert max(amounts) - min(amounts) <= Decimal("0.01")
        assert amounts == sorted(amounts)

    def test_split_evenly_exact(self):
        assert split_evenly(Decimal("1200"), 12) == [Decimal("100.00")] * 12

    def test_split_evenly_without_slots(self):
        assert split_evenly(Decimal("100"), 0) == []


class TestDerivedQuantities:

    def test_remaining(self):
        plan = SimpleNamespace(
            amount=Decimal("1000.00"), deposited_amount=Decimal("300.00"),
            total_periods=10, completed_periods=3,
        )
        assert remaining_amount(plan) == Decimal("700.00")
        assert remaining_periods(plan) == 7

    def test_recompute_guards_zero_periods(self):
        assert recompute_amount_per_period(Decimal("650"), 6) == Decimal("108.33")
        assert recompute_amount_per_period(Decimal("100"), 0) is None
        assert recompute_amount_per_period(Decimal("100"), -1) is None


class TestPlanLedgerEdit:
    """Test suite for editing a plan's target and schedule."""

    @pytest.mark.asyncio
    async def test_unchanged_edit_leaves_queue_untouched(self, db_session, make_plan):
        plan = await make_plan(amount="1200.00", total_periods=12, completed=2)
        queue = DepositQueue(db_session)
        before = _snapshot(await queue.list_for_plan(plan.id, plan.user_id))

        regenerated = await PlanLedger(db_session).edit(plan, Decimal("1200.00"), 10, date(2026, 6, 1))
        await db_session.commit()

        assert regenerated is False
        assert _snapshot(await queue.list_for_plan(plan.id, plan.user_id)) == before
        assert plan.end_date == date(2025, 12, 1)

    @pytest.mark.asyncio
    async def test_edit_regenerates_pending_tail(self, db_session, make_plan):
        plan = await make_plan(amount="1200.00", total_periods=12, completed=2)

        regenerated = await PlanLedger(db_session).edit(plan, Decimal("1400.00"), 4, date(2025, 6, 1))
        await db_session.commit()

        assert regenerated is True
        assert plan.amount == Decimal("1400.00")
        assert plan.total_periods == 6
        assert plan.completed_periods == 2
        assert plan.amount_per_period == Decimal("300.00")
        assert plan.end_date == date(2025, 6, 1)

        pending = await DepositQueue(db_session).pending(plan.id)
        assert [d.date for d in pending] == [
            date(2025, 3, 1), date(2025, 4, 1), date(2025, 5, 1), date(2025, 6, 1),
        ]
        assert all(d.deposited_amount == Decimal("300.00") for d in pending)
        assert sum(d.deposited_amount for d in pending) + plan.deposited_amount == plan.amount

    @pytest.mark.asyncio
    async def test_edit_keeps_completed_history(self, db_session, make_plan):
        plan = await make_plan(amount="1200.00", total_periods=12, completed=3)

        await PlanLedger(db_session).edit(plan, Decimal("1500.00"), 6, date(2025, 9, 1))
        await db_session.commit()

        result = await db_session.execute(
            select(Deposit).where(Deposit.plan_id == plan.id, Deposit.status == DepositStatus.COMPLETED)
        )
        assert len(result.scalars().all()) == 3

    @pytest.mark.asyncio
    async def test_edit_rejects_end_date_too_early(self, db_session, make_plan):
        plan = await make_plan(amount="1200.00", total_periods=12, completed=2)

        with pytest.raises(ValidationError):
            await PlanLedger(db_session).edit(plan, Decimal("1200.00"), 5, date(2025, 4, 1))

    @pytest.mark.asyncio
    async def test_edit_rejects_target_below_deposits(self, db_session, make_plan):
        plan = await make_plan(amount="1200.00", total_periods=12, completed=5)

        with pytest.raises(ValidationError):
            await PlanLedger(db_session).edit(plan, Decimal("400.00"), 3, date(2025, 12, 1))

    @pytest.mark.asyncio
    async def test_edit_rejects_cancelled_plan(self, db_session, make_plan):
        plan = await make_plan()
        plan.status = PlanStatus.CANCELLED

        with pytest.raises(ValidationError):
            await PlanLedger(db_session).edit(plan, Decimal("2000.00"), 12, date(2026, 1, 1))


class TestPlanLedgerStatus:
    """Test suite for lifecycle transitions."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action,start,expected", [
        ("pause", PlanStatus.ACTIVE, PlanStatus.PAUSED),
        ("terminate", PlanStatus.ACTIVE, PlanStatus.CANCELLED),
        ("terminate", PlanStatus.PAUSED, PlanStatus.CANCELLED),
    ])
    async def test_allowed_transitions(self, db_session, make_plan, action, start, expected):
        plan = await make_plan()
        plan.status = start

        await PlanLedger(db_session).set_status(plan, action)

        assert plan.status == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action,start", [
        ("resume", PlanStatus.ACTIVE),
        ("pause", PlanStatus.PAUSED),
        ("pause", PlanStatus.CANCELLED),
        ("resume", PlanStatus.CANCELLED),
        ("terminate", PlanStatus.COMPLETED),
        ("explode", PlanStatus.ACTIVE),
    ])
    async def test_rejected_transitions(self, db_session, make_plan, action, start):
        plan = await make_plan()
        plan.status = start

        with pytest.raises(ValidationError):
            await PlanLedger(db_session).set_status(plan, action)

    @pytest.mark.asyncio
    async def test_resume_regenerates_schedule_from_today(self, db_session, make_plan):
        plan = await make_plan(amount="1200.00", total_periods=12, completed=4)
        plan.status = PlanStatus.PAUSED

        await PlanLedger(db_session).set_status(plan, "resume", today=date(2025, 10, 10))
        await db_session.commit()

        assert plan.status == PlanStatus.ACTIVE
        pending = await DepositQueue(db_session).pending(plan.id)
        assert len(pending) == 8
        assert pending[0].date == date(2025, 10, 10)
        assert pending[-1].date == date(2026, 5, 10)
        assert plan.end_date == date(2026, 5, 10)
        assert all(d.deposited_amount == Decimal("100.00") for d in pending)
