# models/__init__.py
from hostel_ledger.models.base import Base
from hostel_ledger.models.fee import BillingEntry
from hostel_ledger.models.ledger import ManualLedgerEntry
from hostel_ledger.models.room import Bed, Room
from hostel_ledger.models.student import Occupant

__all__ = [
    "Base",
    "Bed",
    "BillingEntry",
    "ManualLedgerEntry",
    "Occupant",
    "Room",
]
