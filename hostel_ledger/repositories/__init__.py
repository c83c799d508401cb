"""
Repository layer: thin data access over SQLAlchemy sessions.
"""

from hostel_ledger.repositories.base import BaseRepository
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.repositories.ledger import ManualLedgerRepository
from hostel_ledger.repositories.room import RoomRepository
from hostel_ledger.repositories.student import OccupantRepository

__all__ = [
    "BaseRepository",
    "BillingEntryRepository",
    "ManualLedgerRepository",
    "OccupantRepository",
    "RoomRepository",
]
