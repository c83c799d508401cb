from hostel_ledger.repositories.room.room_repository import RoomRepository

__all__ = ["RoomRepository"]
