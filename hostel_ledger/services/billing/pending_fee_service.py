"""
Pending-fee cache recompute.

This is the only writer of the occupant's pending-fee columns. Every
billing mutation calls `recompute` once at the end; a failure here is
logged and swallowed because the cache can always be rebuilt later.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.services.base import BaseService
from hostel_ledger.utils.money import ZERO


class PendingFeeService(BaseService[Occupant, OccupantRepository]):

    def __init__(
        self,
        repository: OccupantRepository,
        db_session: Session,
        billing_repository: Optional[BillingEntryRepository] = None,
    ):
        super().__init__(repository, db_session)
        self.billing_repository = billing_repository or BillingEntryRepository(db_session)

    def compute(self, occupant_id: str) -> Dict[str, Any]:
        """Derive the cache values from the occupant's open entries."""
        entries = self.billing_repository.list_open_for_occupant(occupant_id)

        total = ZERO
        due_dates = []
        for entry in entries:
            amount = entry.outstanding
            if amount <= ZERO:
                continue
            total += amount
            due_dates.append(entry.due_date)

        return {
            "has_pending_fees": total > ZERO,
            "total_pending_amount": total,
            "pending_fees_from": min(due_dates) if due_dates else None,
            "pending_fees_until": max(due_dates) if due_dates else None,
        }

    def recompute(self, occupant_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Rewrite the occupant's pending-fee cache.

        Returns the new cache values, or None when the occupant is missing
        or the write failed.
        """
        if not occupant_id:
            return None
        try:
            occupant = self.repository.find_by_id(occupant_id)
            if occupant is None:
                return None

            values = self.compute(occupant_id)
            for key, value in values.items():
                setattr(occupant, key, value)
            self.db.add(occupant)
            self._commit()

            self._logger.debug(
                "Pending fee cache recomputed",
                extra={"occupant_id": occupant_id, "total_pending_amount": str(values["total_pending_amount"])},
            )
            return values
        except Exception as e:
            self._rollback()
            self._logger.warning(
                f"Pending fee cache recompute failed: {e}",
                exc_info=True,
                extra={"occupant_id": occupant_id},
            )
            return None
