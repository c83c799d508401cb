"""Occupant repository."""

from typing import List, Optional

from sqlalchemy.orm import Session

from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.base import BaseRepository


class OccupantRepository(BaseRepository[Occupant]):
    """Data access for occupants."""

    def __init__(self, db: Session):
        super().__init__(Occupant, db)

    def find_by_external_id(self, external_id: str) -> Optional[Occupant]:
        return self.find_one_by_criteria({"external_id": external_id})

    def find_by_email(self, email: str) -> Optional[Occupant]:
        return self.find_one_by_criteria({"email": email.strip().lower()})

    def list_occupants(self, status: Optional[str] = None) -> List[Occupant]:
        return self.find_by_criteria({"status": status}, order_by=["name"])

    def list_in_room(self, room_id: str) -> List[Occupant]:
        """Occupants whose current room is room_id."""
        return self.find_by_criteria({"current_room_id": room_id})
