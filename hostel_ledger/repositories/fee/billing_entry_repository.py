"""Billing entry repository."""

from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from hostel_ledger.models.base import OPEN_FEE_STATUSES, SETTLED_FEE_STATUSES, FeeKind, FeeStatus
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.repositories.base import BaseRepository

# Statuses a package can be in while the occupant is still living on it
ACTIVE_PACKAGE_STATUSES = (
    FeeStatus.PENDING,
    FeeStatus.PARTIAL,
    FeeStatus.PAID,
    FeeStatus.OVERDUE,
)


class BillingEntryRepository(BaseRepository[BillingEntry]):
    """Data access for billing entries."""

    def __init__(self, db: Session):
        super().__init__(BillingEntry, db)

    def list_for_occupant(self, occupant_id: str) -> List[BillingEntry]:
        """All entries of an occupant, oldest first."""
        return (
            self.db.query(BillingEntry)
            .filter(BillingEntry.occupant_id == occupant_id)
            .order_by(BillingEntry.due_date, BillingEntry.created_at)
            .all()
        )

    def list_open_for_occupant(self, occupant_id: str) -> List[BillingEntry]:
        """Entries still owing money, ordered by due date."""
        return (
            self.db.query(BillingEntry)
            .filter(
                BillingEntry.occupant_id == occupant_id,
                BillingEntry.status.in_([status.value for status in OPEN_FEE_STATUSES]),
            )
            .order_by(BillingEntry.due_date, BillingEntry.created_at)
            .all()
        )

    def latest_package(
        self,
        occupant_id: str,
        statuses: Sequence[FeeStatus] = ACTIVE_PACKAGE_STATUSES,
    ) -> Optional[BillingEntry]:
        """Newest package entry in one of the given statuses."""
        return (
            self.db.query(BillingEntry)
            .filter(
                BillingEntry.occupant_id == occupant_id,
                BillingEntry.kind == FeeKind.PACKAGE.value,
                BillingEntry.status.in_([status.value for status in statuses]),
            )
            .order_by(BillingEntry.created_at.desc())
            .first()
        )

    def list_entries(
        self,
        occupant_id: Optional[str] = None,
        status: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> List[BillingEntry]:
        return self.find_by_criteria(
            {"occupant_id": occupant_id, "status": status, "kind": kind},
            order_by=["-due_date", "-created_at"],
        )

    def has_settled_entries(self, occupant_id: str) -> bool:
        """True when any of the occupant's entries is fully settled."""
        return (
            self.db.query(BillingEntry.id)
            .filter(
                BillingEntry.occupant_id == occupant_id,
                BillingEntry.status.in_([status.value for status in SETTLED_FEE_STATUSES]),
            )
            .first()
            is not None
        )
