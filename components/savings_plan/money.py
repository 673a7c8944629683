"""Cent-precision helpers for plan amounts."""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import List

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a number to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def split_evenly(total, count: int) -> List[Decimal]:
    """
    Split ``total`` into ``count`` cent amounts that add up to ``total``.

    Every slot carries the even share rounded down and the leftover cents go
    one each to the last slots, e.g. 650 over 6 gives four 108.33 and two
    108.34. Slots never differ by more than a cent.
    """
    if count <= 0:
        return []
    total = to_money(total)
    share = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    leftover = int((total - share * count) / CENT)
    return [share] * (count - leftover) + [share + CENT] * leftover
