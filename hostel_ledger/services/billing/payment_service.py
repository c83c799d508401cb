"""
Charges and payments on billing entries.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from hostel_ledger.core.exceptions import InvalidStateError, ValidationFailureError
from hostel_ledger.models.base import (
    GATEWAY_PAYMENT_METHODS,
    SETTLED_FEE_STATUSES,
    Component,
    FeeKind,
    FeeSource,
    FeeStatus,
    PaymentMethod,
)
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.schemas.fee import ChargeCreate
from hostel_ledger.services.base import ServiceResult
from hostel_ledger.services.billing.billing_base import BillingBaseService
from hostel_ledger.utils.date_utils import today
from hostel_ledger.utils.money import ZERO, to_money

# Component an ad hoc charge is booked under when no breakdown is given
_DEFAULT_COMPONENT = {
    FeeKind.MESS: Component.MESS,
    FeeKind.SECURITY: Component.DEPOSIT,
}


class PaymentService(BillingBaseService):
    """Ad hoc charges, gateway payments and split settlements."""

    # -------------------------------------------------------------------------
    # Charges
    # -------------------------------------------------------------------------

    def create_charge(self, request: ChargeCreate) -> ServiceResult[Dict[str, Any]]:
        """Raise an operator-entered charge against an occupant."""
        try:
            occupant = self._get_occupant(request.occupant_id)
            warnings: List[str] = []
            kind = FeeKind(request.kind)

            parts = {
                Component.RENT: request.rent_amount,
                Component.MESS: request.mess_amount,
                Component.DEPOSIT: request.deposit_amount,
            }
            if all(value is None for value in parts.values()):
                parts[_DEFAULT_COMPONENT.get(kind, Component.RENT)] = request.total_amount

            room_number = request.room_number
            bed_label = request.bed_label
            room_type = None
            room_ref = room_number or occupant.current_room_id
            room = self.rooms.find_by_id_or_number(room_ref) if room_ref else None
            if room is not None:
                room_number = room.room_number
                room_type = str(getattr(room.room_type, "value", room.room_type))
                if bed_label is None and same_room(room.id, occupant.current_room_id):
                    _, bed_label = self.allocation.describe_placement(room, occupant.id)

            entry = BillingEntry(
                occupant_id=occupant.id,
                kind=kind.value,
                source=FeeSource.MANUAL.value,
                description=request.description or f"{kind.value.capitalize()} charge",
                total_amount=to_money(request.total_amount),
                rent_amount=to_money(parts[Component.RENT]),
                mess_amount=to_money(parts[Component.MESS]),
                deposit_amount=to_money(parts[Component.DEPOSIT]),
                paid_amount=ZERO,
                remaining_balance=to_money(request.total_amount),
                status=FeeStatus.PENDING.value,
                due_date=request.due_date,
                package_duration_months=request.package_duration_months,
                check_in_date=request.check_in_date,
                room_number=room_number,
                bed_label=bed_label,
                room_type=room_type,
            )
            entry = self.repository.create(entry)
            self._log_operation(
                "Charge created",
                entry.id,
                {"occupant_id": occupant.id, "kind": kind.value, "total_amount": str(entry.total_amount)},
            )

            if kind == FeeKind.PACKAGE and bed_label and not occupant.current_room_id:
                self._seat_from_snapshot(entry, warnings)

            self.finish(occupant.id)
            self.db.refresh(entry)
            return ServiceResult.success(
                {"billing_entry": entry, "warnings": warnings},
                message="Charge created successfully",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(
                e, "create charge", request.occupant_id, {"kind": str(request.kind)}
            )

    def get_entry(self, fee_id: str) -> ServiceResult[BillingEntry]:
        try:
            return ServiceResult.success(self._get_entry(fee_id))
        except Exception as e:
            return self._handle_exception(e, "get fee", fee_id)

    def list_entries(
        self,
        occupant_id: Optional[str] = None,
        status: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> ServiceResult[List[BillingEntry]]:
        try:
            entries = self.repository.list_entries(occupant_id=occupant_id, status=status, kind=kind)
            return ServiceResult.success(entries, metadata={"count": len(entries)})
        except Exception as e:
            return self._handle_exception(e, "list fees", occupant_id)

    def delete_entry(self, fee_id: str) -> ServiceResult[Dict[str, Any]]:
        """
        Delete a billing entry.

        Manual receipts that pointed at it are kept as free-standing ledger
        entries; the link is cleared best-effort.
        """
        try:
            entry = self._get_entry(fee_id)
            occupant_id = entry.occupant_id
            warnings: List[str] = []

            self.repository.delete(entry)
            self._log_operation("Fee deleted", fee_id, {"occupant_id": occupant_id})

            with self.best_effort("unlink ledger receipts", warnings, {"fee_id": fee_id}):
                self.ledger.unlink_billing_entry(fee_id, commit=False)

            self.finish(occupant_id)
            return ServiceResult.success(
                {"fee_id": fee_id, "deleted": True, "warnings": warnings},
                message="Fee deleted successfully",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(e, "delete fee", fee_id)

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def apply_payment(
        self,
        fee_id: str,
        payment_method: str,
        transaction_id: Optional[str],
        payment_date: Optional[date] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Settle the whole outstanding amount through a payment gateway.

        Package entries carrying a bed label also (re)seat the occupant in
        that bed when they are not seated anywhere; that step never fails
        the payment.
        """
        try:
            entry = self._get_entry(fee_id)
            if entry.status in SETTLED_FEE_STATUSES:
                raise InvalidStateError(
                    f"Fee is already {FeeStatus(entry.status).value}",
                    {"fee_id": entry.id, "status": FeeStatus(entry.status).value},
                )
            if not entry.occupant_id:
                raise InvalidStateError("Fee has no occupant", {"fee_id": entry.id})

            method = (payment_method or "").strip().lower()
            if method not in {m.value for m in GATEWAY_PAYMENT_METHODS}:
                raise ValidationFailureError(
                    "Payment method must be one of: "
                    + ", ".join(m.value for m in GATEWAY_PAYMENT_METHODS),
                    field="payment_method",
                )
            if not transaction_id or not transaction_id.strip():
                raise ValidationFailureError("Transaction id is required", field="transaction_id")

            warnings: List[str] = []
            on = payment_date or today()
            amounts = self.split_outstanding(entry)

            with self.transaction():
                self.apply_amounts(entry, amounts["A"], amounts["B"], on)
                entry.payment_method = method
                entry.transaction_id = transaction_id.strip()
                self.db.add(entry)

            self._log_operation(
                "Fee paid",
                entry.id,
                {"occupant_id": entry.occupant_id, "payment_method": method, "amount": str(entry.paid_amount)},
            )

            if entry.is_package and entry.bed_label:
                occupant = self.occupants.find_by_id(entry.occupant_id)
                if occupant is not None and not occupant.current_room_id:
                    self._seat_from_snapshot(entry, warnings)

            self.finish(entry.occupant_id)
            self.db.refresh(entry)
            return ServiceResult.success(
                {"billing_entry": entry, "ledger_entries_created": 0, "warnings": warnings},
                message="Payment recorded successfully",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(e, "apply payment", fee_id, {"payment_method": payment_method})

    def record_split_payment(
        self,
        fee_id: str,
        account_a_amount: Decimal,
        account_b_amount: Decimal,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        account_a_voucher: Optional[str] = None,
        account_b_voucher: Optional[str] = None,
        payment_date: Optional[date] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Record a (possibly partial) payment split across accounts A and B.

        One Payment ledger receipt is written per nonzero account.
        """
        try:
            entry = self._get_entry(fee_id)
            if entry.status in SETTLED_FEE_STATUSES:
                raise InvalidStateError(
                    f"Fee is already {FeeStatus(entry.status).value}",
                    {"fee_id": entry.id, "status": FeeStatus(entry.status).value},
                )
            if not entry.occupant_id:
                raise InvalidStateError("Fee has no occupant", {"fee_id": entry.id})

            amount_a = to_money(account_a_amount)
            amount_b = to_money(account_b_amount)
            if amount_a < ZERO or amount_b < ZERO:
                raise ValidationFailureError("Payment amounts cannot be negative", field="amount")
            if amount_a + amount_b <= ZERO:
                raise ValidationFailureError(
                    "At least one account amount must be greater than zero", field="amount"
                )
            remaining = to_money(entry.total_amount) - to_money(entry.paid_amount)
            if amount_a + amount_b > remaining:
                raise ValidationFailureError(
                    f"Payment of {amount_a + amount_b} exceeds the remaining balance of {remaining}",
                    field="amount",
                )

            warnings: List[str] = []
            on = payment_date or today()
            method = PaymentMethod(payment_method).value

            with self.transaction():
                self.apply_amounts(entry, amount_a, amount_b, on)
                entry.payment_method = method
                if account_a_voucher:
                    entry.account_a_voucher = account_a_voucher
                if account_b_voucher:
                    entry.account_b_voucher = account_b_voucher
                self.db.add(entry)

            self._log_operation(
                "Split payment recorded",
                entry.id,
                {
                    "occupant_id": entry.occupant_id,
                    "account_a_amount": str(amount_a),
                    "account_b_amount": str(amount_b),
                    "status": str(getattr(entry.status, "value", entry.status)),
                },
            )

            created = self.record_receipts(
                entry,
                {"A": amount_a, "B": amount_b},
                method,
                {"A": account_a_voucher, "B": account_b_voucher},
                on,
                warnings,
            )

            self.finish(entry.occupant_id)
            self.db.refresh(entry)
            return ServiceResult.success(
                {"billing_entry": entry, "ledger_entries_created": created, "warnings": warnings},
                message="Payment recorded successfully",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(e, "record split payment", fee_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _seat_from_snapshot(self, entry: BillingEntry, warnings: List[str]) -> None:
        """Seat the occupant in the bed recorded on the entry, best-effort."""
        try:
            room = self._get_room(entry.room_number)
            occupant = self._get_occupant(entry.occupant_id)
            self.allocation.seat(room, occupant, entry.bed_label, warnings)
        except Exception as e:
            self._rollback()
            message = f"re-allocate bed {entry.bed_label} failed after payment: {e}"
            warnings.append(message)
            self._logger.warning(
                message,
                extra={
                    "step": "re-allocate bed",
                    "partial_commit": True,
                    "fee_id": entry.id,
                    "room_number": entry.room_number,
                    "bed_label": entry.bed_label,
                },
            )


def same_room(left: Optional[str], right: Optional[str]) -> bool:
    return bool(left) and left == right
