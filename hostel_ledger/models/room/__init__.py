from hostel_ledger.models.room.bed import Bed
from hostel_ledger.models.room.room import Room

__all__ = ["Bed", "Room"]
