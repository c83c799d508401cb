from hostel_ledger.schemas.student.occupant import OccupantCreate, OccupantResponse

__all__ = ["OccupantCreate", "OccupantResponse"]
