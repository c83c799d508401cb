"""
Shared plumbing for the billing engine services.

Every billing service works on the same set of documents (billing
entries, manual ledger entries, occupants, rooms) and finishes each
mutation with a pending-fee cache recompute.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import NotFoundError
from hostel_ledger.models.base import (
    FeeKind,
    FeeStatus,
    LedgerEntryKind,
    SettlementAccount,
)
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.models.ledger import ManualLedgerEntry
from hostel_ledger.models.room import Room
from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.ledger import ManualLedgerRepository
from hostel_ledger.repositories.room import RoomRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.services.allocation import AllocationService
from hostel_ledger.services.base import BaseService
from hostel_ledger.services.billing.pending_fee_service import PendingFeeService
from hostel_ledger.utils.date_utils import today
from hostel_ledger.utils.money import ZERO, to_money


def generate_voucher(prefix: str, on: Optional[date] = None) -> str:
    """Receipt number such as RCPT-20240105-9F3A1C."""
    stamp = (on or today()).strftime("%Y%m%d")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:6].upper()}"


class BillingBaseService(BaseService[BillingEntry, BillingEntryRepository]):
    """Repositories, lookups and settlement helpers shared by billing services."""

    def __init__(
        self,
        repository: BillingEntryRepository,
        db_session: Session,
        allocation_service: Optional[AllocationService] = None,
    ):
        super().__init__(repository, db_session)
        self.occupants = OccupantRepository(db_session)
        self.rooms = RoomRepository(db_session)
        self.ledger = ManualLedgerRepository(db_session)
        self.allocation = allocation_service or AllocationService(
            self.rooms, db_session, occupant_repository=self.occupants
        )
        self.pending_fees = PendingFeeService(
            self.occupants, db_session, billing_repository=repository
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_entry(self, fee_id: str) -> BillingEntry:
        entry = self.repository.find_by_id(fee_id)
        if entry is None:
            raise NotFoundError("Fee", fee_id)
        return entry

    def _get_occupant(self, occupant_id: Optional[str]) -> Occupant:
        occupant = self.occupants.find_by_id(occupant_id)
        if occupant is None:
            raise NotFoundError("Occupant", occupant_id)
        return occupant

    def _get_room(self, room_ref: Optional[str]) -> Room:
        room = self.rooms.find_by_id_or_number(room_ref) if room_ref else None
        if room is None:
            raise NotFoundError("Room", room_ref)
        return room

    # -------------------------------------------------------------------------
    # Settlement helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def account_targets(entry: BillingEntry) -> Dict[str, Decimal]:
        """
        How much of the entry each settlement account should collect.

        Mess goes to account B, everything else (rent, deposit, ad hoc
        charges) to account A.
        """
        total = to_money(entry.total_amount)
        if entry.kind == FeeKind.MESS:
            return {"A": ZERO, "B": total}
        mess = to_money(entry.mess_amount)
        if mess > total:
            mess = total
        return {"A": total - mess, "B": mess}

    def apply_amounts(
        self,
        entry: BillingEntry,
        account_a: Decimal,
        account_b: Decimal,
        on: Optional[date] = None,
    ) -> None:
        """Add collected amounts to the entry and re-derive partial/paid."""
        account_a = to_money(account_a)
        account_b = to_money(account_b)
        entry.account_a_amount = to_money(entry.account_a_amount) + account_a
        entry.account_b_amount = to_money(entry.account_b_amount) + account_b
        entry.paid_amount = to_money(entry.paid_amount) + account_a + account_b

        remaining = to_money(entry.total_amount) - to_money(entry.paid_amount)
        entry.remaining_balance = max(ZERO, remaining)
        if remaining <= ZERO:
            entry.status = FeeStatus.PAID.value
            entry.paid_date = on or today()
        elif to_money(entry.paid_amount) > ZERO:
            entry.status = FeeStatus.PARTIAL.value

    def split_outstanding(self, entry: BillingEntry) -> Dict[str, Decimal]:
        """Split what is still owed across accounts A and B."""
        outstanding = max(ZERO, to_money(entry.total_amount) - to_money(entry.paid_amount))
        targets = self.account_targets(entry)
        owed_b = max(ZERO, targets["B"] - to_money(entry.account_b_amount))
        part_b = min(outstanding, owed_b)
        return {"A": outstanding - part_b, "B": part_b}

    def add_ledger_entry(
        self,
        occupant_id: str,
        kind: LedgerEntryKind,
        account: SettlementAccount,
        amount: Decimal,
        description: str,
        entry_date: Optional[date] = None,
        voucher: Optional[str] = None,
        payment_method: Optional[str] = None,
        tag: Optional[str] = None,
        billing_entry_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ManualLedgerEntry:
        """Write one manual ledger entry in its own commit."""
        entry = ManualLedgerEntry(
            occupant_id=occupant_id,
            entry_date=entry_date or today(),
            kind=LedgerEntryKind(kind).value,
            account=SettlementAccount(account).value,
            amount=to_money(amount),
            voucher=voucher,
            payment_method=payment_method,
            description=description,
            tag=getattr(tag, "value", tag),
            billing_entry_id=billing_entry_id,
            details=details or {},
        )
        return self.ledger.create(entry)

    def finish(self, occupant_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """Closing step of every billing mutation."""
        return self.pending_fees.recompute(occupant_id)

    def record_receipts(
        self,
        entry: BillingEntry,
        amounts: Dict[str, Decimal],
        payment_method: str,
        vouchers: Dict[str, Optional[str]],
        on: date,
        warnings: List[str],
    ) -> int:
        """
        Write Payment ledger entries for the amounts collected per account.

        Receipts are subordinate to the billing entry write: a failure is
        a warning, not an error.
        """
        created = 0
        for account, tag, amount in self._receipt_lines(entry, amounts):
            with self.best_effort(
                f"record account {account} receipt",
                warnings,
                {"fee_id": entry.id, "account": account, "amount": str(amount)},
            ):
                self.add_ledger_entry(
                    occupant_id=entry.occupant_id,
                    kind=LedgerEntryKind.PAYMENT,
                    account=SettlementAccount(account),
                    amount=amount,
                    description=f"Payment towards {entry.description or entry.kind}",
                    entry_date=on,
                    voucher=vouchers.get(account) or generate_voucher("RCPT", on),
                    payment_method=payment_method,
                    tag=tag,
                    billing_entry_id=entry.id,
                )
                created += 1
        return created

    def _receipt_lines(self, entry: BillingEntry, amounts: Dict[str, Decimal]) -> List[tuple]:
        """
        (account, tag, amount) per receipt to write.

        Account B is always mess. On account A the package deposit is
        receipted before rent, net of deposit receipts already on file.
        """
        lines = []
        amount_a = to_money(amounts.get("A"))
        amount_b = to_money(amounts.get("B"))

        deposit = to_money(entry.deposit_amount)
        if amount_a > ZERO and deposit > ZERO:
            receipted = sum(
                (to_money(item.amount) for item in self.ledger.list_for_billing_entry(entry.id)
                 if item.tag == "deposit" and item.kind == LedgerEntryKind.PAYMENT),
                ZERO,
            )
            part = min(amount_a, max(ZERO, deposit - receipted))
            if part > ZERO:
                lines.append(("A", "deposit", part))
                amount_a -= part

        if amount_a > ZERO:
            lines.append(("A", "rent", amount_a))
        if amount_b > ZERO:
            lines.append(("B", "mess", amount_b))
        return lines
