"""
Manual ledger entries: operator-recorded collections, charges and
account corrections.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import InvalidStateError, NotFoundError, ValidationFailureError
from hostel_ledger.models.base import SettlementAccount
from hostel_ledger.models.ledger import ManualLedgerEntry
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.ledger import ManualLedgerRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.schemas.ledger import ManualEntryCreate
from hostel_ledger.services.base import BaseService, ServiceResult
from hostel_ledger.services.billing.pending_fee_service import PendingFeeService
from hostel_ledger.utils.money import to_money


class ManualLedgerService(BaseService[ManualLedgerEntry, ManualLedgerRepository]):

    def __init__(self, repository: ManualLedgerRepository, db_session: Session):
        super().__init__(repository, db_session)
        self.occupants = OccupantRepository(db_session)
        self.billing = BillingEntryRepository(db_session)
        self.pending_fees = PendingFeeService(self.occupants, db_session, billing_repository=self.billing)

    def _get_entry(self, entry_id: str, occupant_id: Optional[str] = None) -> ManualLedgerEntry:
        entry = self.repository.find_by_id(entry_id)
        if entry is None or (occupant_id and entry.occupant_id != occupant_id):
            raise NotFoundError("Ledger entry", entry_id)
        return entry

    def list_manual_entries(self, occupant_id: str) -> ServiceResult[List[ManualLedgerEntry]]:
        try:
            self.occupants.get_by_id(occupant_id)
            entries = self.repository.list_for_occupant(occupant_id)
            return ServiceResult.success(entries, metadata={"count": len(entries)})
        except Exception as e:
            return self._handle_exception(e, "list ledger entries", occupant_id)

    def add_manual_entry(
        self,
        occupant_id: str,
        request: ManualEntryCreate,
    ) -> ServiceResult[ManualLedgerEntry]:
        try:
            occupant = self.occupants.get_by_id(occupant_id)
            if request.billing_entry_id:
                billing_entry = self.billing.find_by_id(request.billing_entry_id)
                if billing_entry is None:
                    raise NotFoundError("Fee", request.billing_entry_id)
                if billing_entry.occupant_id != occupant.id:
                    raise ValidationFailureError(
                        "Billing entry belongs to a different occupant",
                        field="billing_entry_id",
                    )

            entry = ManualLedgerEntry(
                occupant_id=occupant.id,
                entry_date=request.entry_date,
                kind=request.kind.value,
                account=request.account.value,
                amount=to_money(request.amount),
                voucher=request.voucher,
                payment_method=request.payment_method,
                description=request.description,
                tag=request.tag.value if request.tag else None,
                billing_entry_id=request.billing_entry_id,
                details=dict(request.details or {}),
            )
            entry = self.repository.create(entry)
            self._log_operation(
                "Manual ledger entry added",
                entry.id,
                {
                    "occupant_id": occupant.id,
                    "kind": entry.kind,
                    "account": entry.account,
                    "amount": str(entry.amount),
                },
            )

            self.pending_fees.recompute(occupant.id)
            return ServiceResult.success(entry, message="Ledger entry added")
        except Exception as e:
            return self._handle_exception(e, "add ledger entry", occupant_id)

    def delete_manual_entry(self, occupant_id: str, entry_id: str) -> ServiceResult[Dict[str, Any]]:
        try:
            entry = self._get_entry(entry_id, occupant_id)
            self.repository.delete(entry)
            self._log_operation("Manual ledger entry deleted", entry_id, {"occupant_id": occupant_id})

            self.pending_fees.recompute(occupant_id)
            return ServiceResult.success({"entry_id": entry_id, "deleted": True}, message="Ledger entry deleted")
        except Exception as e:
            return self._handle_exception(e, "delete ledger entry", entry_id, {"occupant_id": occupant_id})

    def delete_manual_entries(self, occupant_id: str) -> ServiceResult[Dict[str, Any]]:
        """Remove every manual entry of the occupant."""
        try:
            self.occupants.get_by_id(occupant_id)
            count = self.repository.delete_for_occupant(occupant_id)
            self._log_operation("Manual ledger entries cleared", occupant_id, {"deleted": count})

            self.pending_fees.recompute(occupant_id)
            return ServiceResult.success(
                {"occupant_id": occupant_id, "deleted": count},
                message=f"{count} ledger entries deleted",
            )
        except Exception as e:
            return self._handle_exception(e, "delete ledger entries", occupant_id)

    def shift_manual_entry_account(
        self,
        entry_id: str,
        target_account: SettlementAccount,
        occupant_id: Optional[str] = None,
    ) -> ServiceResult[ManualLedgerEntry]:
        """Move an entry between settlement accounts A and B."""
        try:
            entry = self._get_entry(entry_id, occupant_id)
            target = SettlementAccount(target_account)
            if entry.account == target:
                raise InvalidStateError(
                    f"Entry is already on account {target.value}",
                    {"entry_id": entry.id, "account": target.value},
                )

            previous = entry.account
            with self.transaction():
                entry.account = target.value
                self.db.add(entry)

            self._log_operation(
                "Manual ledger entry shifted",
                entry.id,
                {"from_account": str(previous), "to_account": target.value},
            )
            self.pending_fees.recompute(entry.occupant_id)
            self.db.refresh(entry)
            return ServiceResult.success(entry, message=f"Entry moved to account {target.value}")
        except Exception as e:
            return self._handle_exception(e, "shift ledger entry", entry_id, {"target_account": str(target_account)})
