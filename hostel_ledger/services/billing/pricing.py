"""
Pure pricing and proration helpers for the billing engine.

No database access: rooms are read through their attributes only, so
these functions are tested with plain objects.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from hostel_ledger.config.settings import settings
from hostel_ledger.utils.date_utils import blocks_elapsed, blocks_touched, days_between
from hostel_ledger.utils.money import ZERO, to_money


@dataclass
class PackagePricing:
    """Per-month rates and totals for one package."""
    duration_months: int
    rent_per_month: Decimal
    mess_per_month: Decimal
    rent_total: Decimal
    mess_total: Decimal
    deposit: Decimal

    @property
    def total(self) -> Decimal:
        return self.rent_total + self.mess_total + self.deposit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_months": self.duration_months,
            "rent_per_month": self.rent_per_month,
            "mess_per_month": self.mess_per_month,
            "rent_total": self.rent_total,
            "mess_total": self.mess_total,
            "deposit": self.deposit,
            "total": self.total,
        }


@dataclass
class TransferAdjustment:
    """Prorated difference between two rooms over the months left."""
    remaining_months: int
    rent_adjustment: Decimal
    mess_adjustment: Decimal

    @property
    def total(self) -> Decimal:
        return self.rent_adjustment + self.mess_adjustment

    @property
    def is_upgrade(self) -> bool:
        return self.total > ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remaining_months": self.remaining_months,
            "rent_adjustment": self.rent_adjustment,
            "mess_adjustment": self.mess_adjustment,
            "total": self.total,
            "is_upgrade": self.is_upgrade,
        }


def rent_per_month(room, duration_months: int) -> Decimal:
    """Rent table entry for the duration, falling back to the base rent."""
    listed = room.rent_for(duration_months)
    return listed if listed is not None else to_money(room.base_rent)


def mess_per_month(room) -> Decimal:
    if room.mess_charge_per_month is None:
        return to_money(settings.DEFAULT_MESS_CHARGE_PER_MONTH)
    return to_money(room.mess_charge_per_month)


def price_package(room, duration_months: int, deposit: Decimal = ZERO) -> PackagePricing:
    rent = rent_per_month(room, duration_months)
    mess = mess_per_month(room)
    return PackagePricing(
        duration_months=duration_months,
        rent_per_month=rent,
        mess_per_month=mess,
        rent_total=to_money(rent * duration_months),
        mess_total=to_money(mess * duration_months),
        deposit=to_money(deposit),
    )


def expected_days(duration_months: Optional[int]) -> int:
    """Length of a package in 30-day blocks."""
    months = duration_months or settings.DEFAULT_PACKAGE_MONTHS
    return months * settings.DAYS_PER_BLOCK


def day_prorated_refund(
    rent_total: Any,
    mess_total: Any,
    deposit: Any,
    expected: int,
    elapsed: int,
) -> Decimal:
    """
    Refund for leaving after `elapsed` of `expected` days.

    Only an early exit is refunded: unused rent and mess pro rata by day
    plus the full deposit. A completed stay refunds nothing. Multiplication
    happens before division and each part is rounded half-up to paise.
    """
    if expected <= 0 or elapsed >= expected:
        return ZERO
    refund = to_money(deposit)

    unused = expected - max(0, elapsed)
    rent_part = to_money(to_money(rent_total) * unused / expected)
    mess_part = to_money(to_money(mess_total) * unused / expected)
    return to_money(rent_part + mess_part + refund)


def actual_stay_months(elapsed: int) -> int:
    """Months charged for a stay of `elapsed` days (partial months count)."""
    return blocks_touched(elapsed, settings.DAYS_PER_BLOCK)


def remaining_package_months(duration_months: int, start: date, on: date) -> int:
    """Whole 30-day blocks of the package not yet used on `on`."""
    used = blocks_elapsed(start, on, settings.DAYS_PER_BLOCK)
    return max(0, duration_months - used)


def elapsed_days(start: date, end: date) -> int:
    return max(0, days_between(start, end))


def transfer_adjustment(old_room, new_room, remaining_months: int) -> TransferAdjustment:
    """
    Monthly rent and mess difference times the months left.

    Rent compares base rents; mess falls back to the hostel default.
    Positive values are surcharges, negative values refunds.
    """
    rent_diff = to_money(new_room.base_rent) - to_money(old_room.base_rent)
    mess_diff = mess_per_month(new_room) - mess_per_month(old_room)
    return TransferAdjustment(
        remaining_months=remaining_months,
        rent_adjustment=to_money(rent_diff * remaining_months),
        mess_adjustment=to_money(mess_diff * remaining_months),
    )
