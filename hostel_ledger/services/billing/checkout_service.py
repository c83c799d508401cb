"""
Checkout: close a package, refund an early exit (unused days plus the
deposit) and free every bed the occupant holds.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect

from hostel_ledger.core.exceptions import InvalidStateError
from hostel_ledger.models.base import FeeKind, FeeSource, FeeStatus, OccupantStatus
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.models.room import Room
from hostel_ledger.models.student import Occupant
from hostel_ledger.services.allocation import beds_held_by
from hostel_ledger.services.base import ServiceResult
from hostel_ledger.services.billing.billing_base import BillingBaseService
from hostel_ledger.services.billing.pricing import (
    actual_stay_months,
    day_prorated_refund,
    elapsed_days,
    expected_days,
)
from hostel_ledger.utils.date_utils import as_date, today
from hostel_ledger.utils.money import ZERO, to_money


class CheckoutService(BillingBaseService):

    def check_out(
        self,
        fee_id: str,
        check_out_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Check the occupant out against one billing entry.

        An early exit refunds the unused days pro rata plus the whole
        deposit; a stay that ran its full length refunds nothing. The refund entry and the bed
        release follow the fee write best-effort.
        """
        try:
            entry = self._get_entry(fee_id)
            if entry.kind == FeeKind.REFUND:
                raise InvalidStateError("Cannot check out against a refund entry", {"fee_id": entry.id})
            if entry.status == FeeStatus.CHECKED_OUT:
                raise InvalidStateError("Fee is already checked out", {"fee_id": entry.id})

            occupant = self._get_occupant(entry.occupant_id)
            rooms = self._rooms_to_release(entry, occupant)
            if not rooms:
                raise InvalidStateError(
                    "Occupant does not hold a room",
                    {"occupant_id": occupant.id, "fee_id": entry.id},
                )

            on = check_out_date or today()

            refund = self.refund_for(entry, on)
            elapsed = elapsed_days(self._stay_start(entry), on)
            warnings: List[str] = []

            with self.transaction():
                entry.status = FeeStatus.CHECKED_OUT.value
                entry.checkout_date = on
                entry.refund_amount = refund
                entry.refund_reason = reason
                entry.actual_stay_months = actual_stay_months(elapsed)
                self.db.add(entry)

            self._log_operation(
                "Occupant checked out",
                entry.id,
                {
                    "occupant_id": occupant.id,
                    "check_out_date": on.isoformat(),
                    "elapsed_days": elapsed,
                    "refund_amount": str(refund),
                },
            )

            refund_entry = None
            if refund > ZERO:
                refund_entry = self._create_refund_entry(entry, refund, on, reason, warnings)

            room = self._release_rooms(occupant, entry, rooms, warnings)

            self.finish(occupant.id)
            self.db.refresh(entry)
            return ServiceResult.success(
                {
                    "billing_entry": entry,
                    "refund_amount": refund,
                    "refund_entry": refund_entry,
                    "room": room,
                    "warnings": warnings,
                },
                message="Checked out successfully",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(e, "check out", fee_id)

    # -------------------------------------------------------------------------
    # Refund
    # -------------------------------------------------------------------------

    @staticmethod
    def _stay_start(entry: BillingEntry) -> date:
        return entry.check_in_date or entry.paid_date or as_date(entry.created_at) or today()

    def refund_for(self, entry: BillingEntry, on: date) -> Decimal:
        """Unused rent and mess by day plus the full deposit, or zero once the stay is complete."""
        components = entry.components
        rent = components["rent"]
        if rent + components["mess"] + components["deposit"] <= ZERO:
            rent = to_money(entry.total_amount)
        return day_prorated_refund(
            rent,
            components["mess"],
            components["deposit"],
            expected_days(entry.package_duration_months),
            elapsed_days(self._stay_start(entry), on),
        )

    def _create_refund_entry(
        self,
        entry: BillingEntry,
        refund: Decimal,
        on: date,
        reason: Optional[str],
        warnings: List[str],
    ) -> Optional[BillingEntry]:
        refund_entry = BillingEntry(
            occupant_id=entry.occupant_id,
            kind=FeeKind.REFUND.value,
            source=FeeSource.CHECKOUT.value,
            related_entry_id=entry.id,
            description=f"Checkout refund{': ' + reason if reason else ''}",
            total_amount=refund,
            paid_amount=refund,
            remaining_balance=ZERO,
            status=FeeStatus.REFUNDED.value,
            due_date=on,
            paid_date=on,
            room_number=entry.room_number,
            bed_label=entry.bed_label,
            room_type=entry.room_type,
        )
        with self.best_effort("create refund entry", warnings, {"fee_id": entry.id, "refund": str(refund)}):
            self.db.add(refund_entry)
        if not inspect(refund_entry).persistent:
            return None
        self.db.refresh(refund_entry)
        return refund_entry

    # -------------------------------------------------------------------------
    # Bed release
    # -------------------------------------------------------------------------

    def _rooms_to_release(self, entry: BillingEntry, occupant: Occupant) -> List[Room]:
        """Every room where the occupant may still hold a bed, deduplicated."""
        candidates: List[Room] = []
        if occupant.current_room_id:
            room = self.rooms.find_by_id(occupant.current_room_id)
            if room is not None:
                candidates.append(room)
        if entry.room_number:
            room = self.rooms.find_by_room_number(entry.room_number)
            if room is not None and beds_held_by(room, occupant.id, entry.bed_label):
                candidates.append(room)
        candidates.extend(self.allocation.rooms_holding(occupant.id))

        unique: List[Room] = []
        seen = set()
        for room in candidates:
            if room.id not in seen:
                seen.add(room.id)
                unique.append(room)
        return unique

    def _release_rooms(
        self,
        occupant: Occupant,
        entry: BillingEntry,
        rooms: List[Room],
        warnings: List[str],
    ) -> Optional[Room]:
        released_from = None
        for room in rooms:
            fallback = entry.bed_label if room.room_number == entry.room_number else None
            with self.best_effort("release bed", warnings, {"room_id": room.id, "occupant_id": occupant.id}):
                self.allocation.unseat(
                    room,
                    occupant.id,
                    warnings,
                    occupant=occupant,
                    fallback_label=fallback,
                    deactivate=True,
                )
                released_from = released_from or room

        if occupant.current_room_id or occupant.status != OccupantStatus.INACTIVE:
            with self.best_effort("deactivate occupant", warnings, {"occupant_id": occupant.id}):
                occupant.current_room_id = None
                occupant.status = OccupantStatus.INACTIVE.value
                self.db.add(occupant)
        return released_from
