from hostel_ledger.services.student.occupant_service import OccupantService

__all__ = ["OccupantService"]
