"""Decimal money helpers (rupees, rounded half-up to paise)."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal/None to a 2-place Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Any]) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return total


def split_evenly(total: Any, parts: int) -> List[Decimal]:
    """
    Split total into `parts` amounts that add back up to total exactly.

    Every part but the last is total/parts rounded to paise; the last part
    absorbs the rounding remainder.
    """
    total = to_money(total)
    if parts <= 0:
        return []
    share = (total / parts).quantize(CENT, rounding=ROUND_HALF_UP)
    amounts = [share] * (parts - 1)
    amounts.append(total - share * (parts - 1))
    return amounts


def split_by_weights(total: Any, weights: List[int]) -> List[Decimal]:
    """
    Split total proportionally to integer weights (day counts), exact sum.

    Zero total weight puts everything on the last part.
    """
    total = to_money(total)
    if not weights:
        return []
    weight_sum = sum(weights)
    if weight_sum <= 0:
        return [ZERO] * (len(weights) - 1) + [total]
    amounts = [
        (total * weight / weight_sum).quantize(CENT, rounding=ROUND_HALF_UP)
        for weight in weights[:-1]
    ]
    amounts.append(total - sum(amounts, ZERO))
    return amounts
