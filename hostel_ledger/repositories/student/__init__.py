from hostel_ledger.repositories.student.occupant_repository import OccupantRepository

__all__ = ["OccupantRepository"]
