from hostel_ledger.models.student.occupant import Occupant

__all__ = ["Occupant"]
