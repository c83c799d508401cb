"""
Room transfer (room shift).

Everything is validated before the first write. The ledger then gets an
informational room-shift marker plus one entry per nonzero rent/mess
adjustment, an upgrade optionally raises an adjustment fee, and finally
the occupant is moved between rooms.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import inspect

from hostel_ledger.config.settings import settings
from hostel_ledger.core.exceptions import InvalidStateError, ValidationFailureError
from hostel_ledger.models.base import (
    BED_LABELS,
    FeeKind,
    FeeSource,
    FeeStatus,
    LedgerEntryKind,
    LedgerTag,
    SettlementAccount,
)
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.models.room import Room
from hostel_ledger.models.student import Occupant
from hostel_ledger.services.base import ServiceResult
from hostel_ledger.services.billing.billing_base import BillingBaseService
from hostel_ledger.services.billing.pricing import (
    TransferAdjustment,
    remaining_package_months,
    transfer_adjustment,
)
from hostel_ledger.utils.date_utils import today
from hostel_ledger.utils.money import ZERO, to_money


def _room_type(room: Room) -> str:
    return str(getattr(room.room_type, "value", room.room_type))


def shift_description(
    from_room: str,
    from_type: str,
    from_bed: Optional[str],
    to_room: str,
    to_type: str,
    to_bed: Optional[str],
) -> str:
    return (
        f"Room Shifted: {from_room} ({from_type}, Bed {from_bed or '-'}) "
        f"→ {to_room} ({to_type}, Bed {to_bed or '-'})"
    )


class TransferService(BillingBaseService):
    """Move an occupant to another room and book the price difference."""

    def remaining_months(self, occupant_id: str) -> int:
        """Unused 30-day blocks of the most recent active package."""
        package = self.repository.latest_package(occupant_id)
        if package is None:
            return settings.DEFAULT_PACKAGE_MONTHS
        duration = package.package_duration_months or settings.DEFAULT_PACKAGE_MONTHS
        start = package.check_in_date or package.paid_date
        if start is None:
            return duration
        return remaining_package_months(duration, start, today())

    def transfer_room(
        self,
        occupant_id: str,
        new_room_id: str,
        new_bed_label: Optional[str] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            occupant = self._get_occupant(occupant_id)
            new_room = self._get_room(new_room_id)
            if not occupant.current_room_id:
                raise InvalidStateError(
                    "Occupant has no room allocated",
                    {"occupant_id": occupant.id},
                )
            old_room = self._get_room(occupant.current_room_id)
            if old_room.id == new_room.id:
                raise InvalidStateError(
                    "Occupant is already in this room; choose a different room",
                    {"room_id": new_room.id},
                )
            label = new_bed_label.strip().upper() if new_bed_label else None
            if label is not None and label not in BED_LABELS:
                raise ValidationFailureError(
                    f"Bed label must be one of: {', '.join(BED_LABELS)}",
                    field="new_bed_label",
                )
            target_bed = self.allocation.check_can_seat(
                new_room, occupant, label, moving_from=old_room.id
            )
            label = target_bed.label

            return self._transfer(occupant, old_room, new_room, label)
        except Exception as e:
            return self._handle_exception(
                e, "transfer room", occupant_id, {"new_room_id": new_room_id, "bed_label": new_bed_label}
            )

    def _transfer(
        self,
        occupant: Occupant,
        old_room: Room,
        new_room: Room,
        new_label: str,
    ) -> ServiceResult[Dict[str, Any]]:
        warnings: List[str] = []
        on = today()

        remaining = self.remaining_months(occupant.id)
        adjustment = transfer_adjustment(old_room, new_room, remaining)
        package = self.repository.latest_package(occupant.id)
        package_id = package.id if package is not None else None

        _, old_label = self.allocation.describe_placement(old_room, occupant.id)
        details = {
            "from_room": old_room.room_number,
            "from_bed": old_label,
            "from_type": _room_type(old_room),
            "to_room": new_room.room_number,
            "to_bed": new_label,
            "to_type": _room_type(new_room),
        }
        description = shift_description(
            old_room.room_number, _room_type(old_room), old_label,
            new_room.room_number, _room_type(new_room), new_label,
        )

        self.add_ledger_entry(
            occupant_id=occupant.id,
            kind=LedgerEntryKind.OTHER,
            account=SettlementAccount.A,
            amount=ZERO,
            description=description,
            entry_date=on,
            tag=LedgerTag.ROOM_SHIFT,
            details=details,
        )
        created = 1
        created += self._record_adjustments(occupant, adjustment, package_id, description, warnings)

        adjustment_fee_id = None
        if adjustment.total > ZERO and settings.CREATE_TRANSFER_ADJUSTMENT_FEE:
            adjustment_fee_id = self._create_adjustment_fee(
                occupant, new_room, new_label, adjustment, package_id, warnings
            )

        self.allocation.move(occupant, old_room, new_room, new_label, warnings)

        self._log_operation(
            "Room transferred",
            occupant.id,
            {
                "from_room": old_room.room_number,
                "to_room": new_room.room_number,
                "bed_label": new_label,
                "remaining_months": remaining,
                "adjustment_total": str(adjustment.total),
            },
        )

        self.finish(occupant.id)
        return ServiceResult.success(
            {
                "old_room": old_room,
                "new_room": new_room,
                "bed_label": new_label,
                "adjustment": adjustment.to_dict(),
                "ledger_entries_created": created,
                "adjustment_fee_id": adjustment_fee_id,
                "warnings": warnings,
            },
            message="Room shifted successfully",
            warnings=warnings,
        )

    def _record_adjustments(
        self,
        occupant: Occupant,
        adjustment: TransferAdjustment,
        package_id: Optional[str],
        description: str,
        warnings: List[str],
    ) -> int:
        """
        One ledger entry per nonzero component.

        Surcharges are Other (debit) entries; reductions are Payment
        entries settled on the spot. Rent books on account A, mess on B.
        """
        created = 0
        parts = (
            ("rent", SettlementAccount.A, adjustment.rent_adjustment),
            ("mess", SettlementAccount.B, adjustment.mess_adjustment),
        )
        for component, account, amount in parts:
            if amount == ZERO:
                continue
            surcharge = amount > ZERO
            with self.best_effort(
                f"record {component} adjustment",
                warnings,
                {"occupant_id": occupant.id, "amount": str(amount)},
            ):
                self.add_ledger_entry(
                    occupant_id=occupant.id,
                    kind=LedgerEntryKind.OTHER if surcharge else LedgerEntryKind.PAYMENT,
                    account=account,
                    amount=abs(amount),
                    description=(
                        f"{component.capitalize()} {'surcharge' if surcharge else 'refund'} for "
                        f"{adjustment.remaining_months} remaining month(s). {description}"
                    ),
                    entry_date=today(),
                    payment_method=None if surcharge else "adjustment",
                    tag=LedgerTag.ADJUSTMENT,
                    billing_entry_id=package_id,
                    details={"component": component, "remaining_months": adjustment.remaining_months},
                )
                created += 1
        return created

    def _create_adjustment_fee(
        self,
        occupant: Occupant,
        new_room: Room,
        new_label: str,
        adjustment: TransferAdjustment,
        package_id: Optional[str],
        warnings: List[str],
    ) -> Optional[str]:
        rent, mess = _fee_components(adjustment)
        fee = BillingEntry(
            occupant_id=occupant.id,
            kind=FeeKind.ADJUSTMENT.value,
            source=FeeSource.TRANSFER.value,
            related_entry_id=package_id,
            description=f"Room shift adjustment to room {new_room.room_number}",
            total_amount=adjustment.total,
            rent_amount=rent,
            mess_amount=mess,
            paid_amount=ZERO,
            remaining_balance=adjustment.total,
            status=FeeStatus.PENDING.value,
            due_date=today(),
            room_number=new_room.room_number,
            bed_label=new_label,
            room_type=_room_type(new_room),
        )
        with self.best_effort("create adjustment fee", warnings, {"occupant_id": occupant.id}):
            self.db.add(fee)
        return fee.id if inspect(fee).persistent else None


def _fee_components(adjustment: TransferAdjustment) -> Tuple[Decimal, Decimal]:
    """
    Rent/mess split of a positive adjustment total.

    A negative component is netted against the positive one so the parts
    add up to the total.
    """
    rent = to_money(adjustment.rent_adjustment)
    mess = to_money(adjustment.mess_adjustment)
    if rent < ZERO:
        return ZERO, to_money(adjustment.total)
    if mess < ZERO:
        return to_money(adjustment.total), ZERO
    return rent, mess
