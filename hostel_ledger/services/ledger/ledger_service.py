"""
Read side of the ledger: loads an occupant's documents and runs the
session projection over them.
"""

from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.ledger import ManualLedgerRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.services.base import BaseService, ServiceResult
from hostel_ledger.services.ledger.session_builder import build_ledger, build_sessions, build_summary
from hostel_ledger.utils.date_utils import today as current_day


class LedgerService(BaseService[Occupant, OccupantRepository]):

    def __init__(self, repository: OccupantRepository, db_session: Session):
        super().__init__(repository, db_session)
        self.billing = BillingEntryRepository(db_session)
        self.manual = ManualLedgerRepository(db_session)

    def get_ledger(self, occupant_id: str, on: Optional[date] = None) -> ServiceResult[Dict[str, Any]]:
        """Sessions (newest first), flat running-balance ledger and summary."""
        try:
            occupant = self.repository.get_by_id(occupant_id)
            as_of = on or current_day()

            entries = self.billing.list_for_occupant(occupant.id)
            manual_entries = self.manual.list_for_occupant(occupant.id)

            sessions = build_sessions(entries, manual_entries, occupant, as_of)
            rows = build_ledger(entries, manual_entries)
            summary = build_summary(occupant, entries, manual_entries, sessions, rows, as_of)

            self._logger.debug(
                "Ledger built",
                extra={
                    "occupant_id": occupant.id,
                    "sessions": len(sessions),
                    "rows": len(rows),
                },
            )
            return ServiceResult.success(
                {
                    "occupant_id": occupant.id,
                    "sessions": [session.to_dict() for session in sessions],
                    "ledger": rows,
                    "summary": summary,
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get ledger", occupant_id)
