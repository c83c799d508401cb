"""
Room repository: lookups by number, availability listings and
occupant-to-bed searches.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hostel_ledger.models.base import RoomStatus
from hostel_ledger.models.room import Bed, Room
from hostel_ledger.repositories.base import BaseRepository


class RoomRepository(BaseRepository[Room]):
    """Data access for rooms and their beds."""

    def __init__(self, db: Session):
        super().__init__(Room, db)

    def find_by_room_number(self, room_number: str) -> Optional[Room]:
        return self.db.query(Room).filter(Room.room_number == room_number).first()

    def find_by_id_or_number(self, ref: str) -> Optional[Room]:
        """Resolve a room by primary key, falling back to room number."""
        return self.find_by_id(ref) or self.find_by_room_number(ref)

    def list_rooms(
        self,
        status: Optional[str] = None,
        room_type: Optional[str] = None,
        is_ac: Optional[bool] = None,
    ) -> List[Room]:
        return self.find_by_criteria(
            {"status": status, "room_type": room_type, "is_ac": is_ac},
            order_by=["room_number"],
        )

    def list_available(self) -> List[Room]:
        """Rooms marked available that still have room under capacity."""
        return (
            self.db.query(Room)
            .filter(Room.status == RoomStatus.AVAILABLE.value, Room.occupied < Room.capacity)
            .order_by(Room.room_number)
            .all()
        )

    def list_excluding_status(self, status: str) -> List[Room]:
        return (
            self.db.query(Room)
            .filter(or_(Room.status != status, Room.status.is_(None)))
            .order_by(Room.room_number)
            .all()
        )

    def rooms_with_bed_for(self, occupant_id: str) -> List[Room]:
        """Rooms holding at least one bed that references the occupant."""
        return (
            self.db.query(Room)
            .join(Bed, Bed.room_id == Room.id)
            .filter(Bed.occupant_id == str(occupant_id))
            .distinct()
            .all()
        )
