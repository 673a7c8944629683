"""Deposit date arithmetic.

Week and fortnight steps are fixed day counts. Month, quarter and year steps
use ``relativedelta``, which clamps to the last day of shorter months
(Jan 31 + 1 month is Feb 28, or Feb 29 in leap years).
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta

from components.savings_plan.models import PeriodUnit

logger = logging.getLogger(__name__)


def parse_period(tag: Union[str, PeriodUnit, None]) -> Optional[PeriodUnit]:
    """Normalize a wire tag to PeriodUnit, None when it is not recognized."""
    if isinstance(tag, PeriodUnit):
        return tag
    if not isinstance(tag, str):
        return None
    try:
        return PeriodUnit(tag.strip().lower())
    except ValueError:
        return None


def advance(start: date, period: PeriodUnit, count: int = 1) -> date:
    """Move ``start`` forward by ``count`` periods."""
    if period == PeriodUnit.WEEK:
        return start + timedelta(days=7 * count)
    if period == PeriodUnit.FORTNIGHT:
        return start + timedelta(days=14 * count)
    if period == PeriodUnit.MONTH:
        return start + relativedelta(months=count)
    if period == PeriodUnit.QUARTER:
        return start + relativedelta(months=3 * count)
    if period == PeriodUnit.YEAR:
        return start + relativedelta(years=count)
    raise ValueError(f"Unknown period unit: {period!r}")


def generate_schedule(
    start_date: Optional[date],
    end_date: Optional[date],
    period: Union[str, PeriodUnit, None],
    total_periods: Optional[int],
) -> List[date]:
    """
    Build the deposit dates of a plan.

    Yields at most ``total_periods`` dates beginning at ``start_date``, one
    period apart, and stops before the first date that falls after
    ``end_date``. Every slot is measured from ``start_date`` so month-end
    anchors are kept (Jan 31, Feb 29, Mar 31, ...).

    Missing or invalid input gives an empty schedule rather than an error.
    """
    if start_date is None or end_date is None or not total_periods:
        return []
    if not isinstance(start_date, date) or not isinstance(end_date, date):
        return []
    if total_periods < 1 or end_date < start_date:
        return []

    unit = parse_period(period)
    if unit is None:
        logger.warning("Unknown period unit %r, returning empty schedule", period)
        return []

    dates = []
    for slot in range(total_periods):
        current = advance(start_date, unit, slot)
        if current > end_date:
            break
        dates.append(current)
    return dates
