"""
Package generation.

A package bills rent and mess for `duration_months` plus, once per
occupant lifetime, the security deposit, as a single billing entry.
Generation is guarded by a process-local advisory lock keyed by occupant
so that double submissions come back as "retry shortly".
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from hostel_ledger.config.settings import settings
from hostel_ledger.core.exceptions import InvalidStateError, ValidationFailureError
from hostel_ledger.core.locks import AdvisoryLock, get_package_lock
from hostel_ledger.models.base import (
    Component,
    FeeKind,
    FeeSource,
    FeeStatus,
    LedgerEntryKind,
    LedgerTag,
    SettlementAccount,
)
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.schemas.fee import CollectionItem
from hostel_ledger.services.allocation import AllocationService
from hostel_ledger.services.base import ServiceResult
from hostel_ledger.services.billing.billing_base import BillingBaseService, generate_voucher
from hostel_ledger.services.billing.pricing import price_package
from hostel_ledger.utils.date_utils import add_months, today
from hostel_ledger.utils.money import ZERO, money_sum, to_money

# Statuses that show money was actually collected against a deposit
_DEPOSIT_PAID_STATUSES = (FeeStatus.PAID, FeeStatus.PARTIAL)


class PackageService(BillingBaseService):
    """Generate multi-month fee packages."""

    def __init__(
        self,
        repository: BillingEntryRepository,
        db_session: Session,
        allocation_service: Optional[AllocationService] = None,
        lock: Optional[AdvisoryLock] = None,
    ):
        super().__init__(repository, db_session, allocation_service)
        self.lock = lock or get_package_lock()

    # -------------------------------------------------------------------------
    # Deposit rule
    # -------------------------------------------------------------------------

    def deposit_already_paid(self, occupant_id: str) -> bool:
        """
        True when the occupant has paid the deposit at some point.

        Either a past billing entry with a deposit component was (at least
        partly) paid, or deposit-tagged ledger payments net of refunds
        reach the configured share of the standard deposit.
        """
        for entry in self.repository.list_for_occupant(occupant_id):
            if to_money(entry.deposit_amount) <= ZERO:
                continue
            if entry.status in _DEPOSIT_PAID_STATUSES:
                return True
            if entry.status == FeeStatus.CHECKED_OUT and to_money(entry.paid_amount) > ZERO:
                return True

        deposited = ZERO
        refunded = ZERO
        for item in self.ledger.list_for_occupant(occupant_id):
            if item.tag == LedgerTag.DEPOSIT and item.kind == LedgerEntryKind.PAYMENT:
                deposited += to_money(item.amount)
            elif item.tag == LedgerTag.REFUND:
                refunded += to_money(item.amount)

        return deposited - refunded >= to_money(settings.deposit_paid_threshold())

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate_package(
        self,
        occupant_id: str,
        duration_months: int,
        due_date: Optional[date] = None,
        collection_plan: Optional[Sequence[CollectionItem]] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Create one package billing entry for the occupant's current room.

        Returns RETRY_LATER while another generation for the same occupant
        is in flight or was completed moments ago.
        """
        try:
            if duration_months < 1 or duration_months > settings.MAX_PACKAGE_MONTHS:
                raise ValidationFailureError(
                    f"Package duration must be between 1 and {settings.MAX_PACKAGE_MONTHS} months",
                    field="duration_months",
                )
            occupant = self._get_occupant(occupant_id)
            if not occupant.current_room_id:
                raise InvalidStateError(
                    "Occupant has no room allocated",
                    {"occupant_id": occupant.id},
                )

            with self.lock.hold(occupant.id):
                return self._generate(occupant, duration_months, due_date, list(collection_plan or []))
        except Exception as e:
            return self._handle_exception(
                e, "generate package", occupant_id, {"duration_months": duration_months}
            )

    def _generate(
        self,
        occupant: Occupant,
        duration_months: int,
        due_date: Optional[date],
        plan: List[CollectionItem],
    ) -> ServiceResult[Dict[str, Any]]:
        room = self._get_room(occupant.current_room_id)
        warnings: List[str] = []

        include_deposit = not self.deposit_already_paid(occupant.id)
        deposit = to_money(settings.STANDARD_DEPOSIT_AMOUNT) if include_deposit else ZERO
        pricing = price_package(room, duration_months, deposit)
        self._validate_plan(plan, pricing.rent_total, pricing.mess_total, pricing.deposit)

        is_resume = self.repository.has_settled_entries(occupant.id)
        if is_resume:
            due = due_date or today()
            check_in = due
        else:
            due = due_date or occupant.enrollment_date or today()
            check_in = occupant.enrollment_date or due

        _, bed_label = self.allocation.describe_placement(room, occupant.id)
        room_type = str(getattr(room.room_type, "value", room.room_type))

        entry = BillingEntry(
            occupant_id=occupant.id,
            kind=FeeKind.PACKAGE.value,
            source=FeeSource.AUTO_PACKAGE.value,
            description=f"{duration_months}-month package, room {room.room_number} ({room_type})",
            total_amount=pricing.total,
            rent_amount=pricing.rent_total,
            mess_amount=pricing.mess_total,
            deposit_amount=pricing.deposit,
            paid_amount=ZERO,
            remaining_balance=pricing.total,
            status=FeeStatus.PENDING.value,
            due_date=due,
            package_duration_months=duration_months,
            check_in_date=check_in,
            room_number=room.room_number,
            bed_label=bed_label,
            room_type=room_type,
        )
        entry = self.repository.create(entry)
        self._log_operation(
            "Package generated",
            entry.id,
            {
                "occupant_id": occupant.id,
                "duration_months": duration_months,
                "total_amount": str(pricing.total),
                "deposit_included": include_deposit,
                "resume": is_resume,
            },
        )

        anchor = check_in if is_resume else (occupant.enrollment_date or check_in)
        with self.best_effort(
            "record admission window",
            warnings,
            {"occupant_id": occupant.id, "fee_id": entry.id},
        ):
            occupant.admission_through_date = add_months(anchor, duration_months)
            occupant.package_duration_months = duration_months
            self.db.add(occupant)

        created = self._collect(entry, plan, warnings) if plan else 0

        self.finish(occupant.id)
        self.db.refresh(entry)
        return ServiceResult.success(
            {
                "billing_entry": entry,
                "ledger_entries_created": created,
                "deposit_included": include_deposit,
                "pricing": pricing.to_dict(),
                "warnings": warnings,
            },
            message="Package generated successfully",
            warnings=warnings,
        )

    # -------------------------------------------------------------------------
    # Collection plan
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_plan(
        plan: List[CollectionItem],
        rent_total: Decimal,
        mess_total: Decimal,
        deposit: Decimal,
    ) -> None:
        """Reject plans that collect more than a component is worth."""
        limits = {Component.RENT: rent_total, Component.MESS: mess_total, Component.DEPOSIT: deposit}
        for component, limit in limits.items():
            collected = money_sum(item.amount for item in plan if item.component == component)
            if collected > limit:
                raise ValidationFailureError(
                    f"Collected {component.value} amount {collected} exceeds the package's "
                    f"{component.value} of {to_money(limit)}",
                    field="collection_plan",
                )

    def _collect(self, entry: BillingEntry, plan: List[CollectionItem], warnings: List[str]) -> int:
        """
        Record each collected amount as a Payment ledger entry, then apply
        what was recorded to the billing entry.
        """
        created = 0
        collected = {"A": ZERO, "B": ZERO}
        for item in plan:
            account = SettlementAccount.B if item.component == Component.MESS else SettlementAccount.A
            on = item.collected_on or today()
            with self.best_effort(
                f"record {item.component.value} collection",
                warnings,
                {"fee_id": entry.id, "amount": str(item.amount)},
            ):
                self.add_ledger_entry(
                    occupant_id=entry.occupant_id,
                    kind=LedgerEntryKind.PAYMENT,
                    account=account,
                    amount=item.amount,
                    description=f"{item.component.value.capitalize()} collected with package",
                    entry_date=on,
                    voucher=item.voucher or generate_voucher("RCPT", on),
                    payment_method=item.payment_method.value,
                    tag=item.component.value,
                    billing_entry_id=entry.id,
                )
                created += 1
                collected[account.value] += to_money(item.amount)

        if created:
            with self.transaction():
                self.apply_amounts(entry, collected["A"], collected["B"])
                self.db.add(entry)
        return created
