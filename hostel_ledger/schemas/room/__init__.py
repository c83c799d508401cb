from hostel_ledger.schemas.room.allocation import (
    AllocateBedRequest,
    AllocationResponse,
    AvailabilityBucket,
    AvailabilityRoom,
    FixRoomStatusResponse,
    ReleaseBedRequest,
    ReleaseResponse,
    RoomAvailabilityStats,
    RoomShiftRequest,
    RoomShiftResponse,
    TransferAdjustment,
)
from hostel_ledger.schemas.room.room_base import (
    BedResponse,
    RoomCreate,
    RoomResponse,
    RoomSummary,
    RoomUpdate,
)

__all__ = [
    "RoomCreate",
    "RoomUpdate",
    "BedResponse",
    "RoomResponse",
    "RoomSummary",
    "AllocateBedRequest",
    "ReleaseBedRequest",
    "RoomShiftRequest",
    "AllocationResponse",
    "ReleaseResponse",
    "FixRoomStatusResponse",
    "TransferAdjustment",
    "RoomShiftResponse",
    "AvailabilityRoom",
    "AvailabilityBucket",
    "RoomAvailabilityStats",
]
