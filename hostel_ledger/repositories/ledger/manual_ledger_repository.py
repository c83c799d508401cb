"""Manual ledger entry repository."""

from typing import List

from sqlalchemy.orm import Session

from hostel_ledger.models.ledger import ManualLedgerEntry
from hostel_ledger.repositories.base import BaseRepository


class ManualLedgerRepository(BaseRepository[ManualLedgerEntry]):
    """Data access for manual ledger entries."""

    def __init__(self, db: Session):
        super().__init__(ManualLedgerEntry, db)

    def list_for_occupant(self, occupant_id: str) -> List[ManualLedgerEntry]:
        """All manual entries of an occupant in date order."""
        return (
            self.db.query(ManualLedgerEntry)
            .filter(ManualLedgerEntry.occupant_id == occupant_id)
            .order_by(ManualLedgerEntry.entry_date, ManualLedgerEntry.created_at)
            .all()
        )

    def delete_for_occupant(self, occupant_id: str, commit: bool = True) -> int:
        """Remove every manual entry of an occupant. Returns the count removed."""
        count = (
            self.db.query(ManualLedgerEntry)
            .filter(ManualLedgerEntry.occupant_id == occupant_id)
            .delete(synchronize_session="fetch")
        )
        if commit:
            self.commit()
        return count

    def list_for_billing_entry(self, billing_entry_id: str) -> List[ManualLedgerEntry]:
        return self.find_by_criteria(
            {"billing_entry_id": billing_entry_id},
            order_by=["entry_date"],
        )

    def unlink_billing_entry(self, billing_entry_id: str, commit: bool = True) -> int:
        """Clear references to a deleted billing entry. Returns the count touched."""
        count = (
            self.db.query(ManualLedgerEntry)
            .filter(ManualLedgerEntry.billing_entry_id == billing_entry_id)
            .update({ManualLedgerEntry.billing_entry_id: None}, synchronize_session="fetch")
        )
        if commit:
            self.commit()
        return count
