# --- File: hostel_ledger/schemas/room/allocation.py ---
"""
Bed allocation, release, repair and room-shift schemas.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from hostel_ledger.models.base import BED_LABELS
from hostel_ledger.schemas.common.base import BaseSchema, WarningsMixin
from hostel_ledger.schemas.room.room_base import RoomSummary

__all__ = [
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


def _normalize_label(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    label = value.strip().upper()
    if label not in BED_LABELS:
        raise ValueError(f"Bed label must be one of: {', '.join(BED_LABELS)}")
    return label


class AllocateBedRequest(BaseSchema):
    occupant_id: str = Field(..., min_length=1)
    bed_label: Optional[str] = Field(default=None, description="Preferred bed (A-D); first free bed when empty")

    @field_validator("bed_label")
    @classmethod
    def validate_bed_label(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_label(v)


class ReleaseBedRequest(BaseSchema):
    occupant_id: str = Field(..., min_length=1)


class RoomShiftRequest(BaseSchema):
    occupant_id: str = Field(..., min_length=1)
    new_room_id: str = Field(..., min_length=1)
    new_bed_label: str = Field(..., min_length=1)

    @field_validator("new_bed_label")
    @classmethod
    def validate_bed_label(cls, v: str) -> str:
        return _normalize_label(v)


class AllocationResponse(WarningsMixin, BaseSchema):
    room: RoomSummary
    occupant_id: str
    bed_label: str


class ReleaseResponse(WarningsMixin, BaseSchema):
    room: RoomSummary
    occupant_id: str
    released_beds: List[str] = Field(default_factory=list)


class FixRoomStatusResponse(BaseSchema):
    room: RoomSummary
    cleared_beds: List[str] = Field(default_factory=list)
    seated_occupants: Dict[str, str] = Field(
        default_factory=dict,
        description="Occupant id -> bed label for occupants given a bed during repair",
    )
    unseated_occupants: List[str] = Field(default_factory=list)
    previous_occupied: int
    previous_status: str


class TransferAdjustment(BaseSchema):
    remaining_months: int
    rent_adjustment: Decimal
    mess_adjustment: Decimal
    total: Decimal
    is_upgrade: bool


class RoomShiftResponse(WarningsMixin, BaseSchema):
    old_room: RoomSummary
    new_room: RoomSummary
    bed_label: str
    adjustment: TransferAdjustment
    ledger_entries_created: int
    adjustment_fee_id: Optional[str] = None


class AvailabilityRoom(BaseSchema):
    room_id: str
    room_number: str
    building: Optional[str] = None
    floor: Optional[int] = None
    capacity: int
    occupied: int
    available: int
    free_beds: List[str] = Field(default_factory=list)
    base_rent: Decimal
    mess_charge_per_month: Decimal
    status: str


class AvailabilityBucket(BaseSchema):
    total: int = 0
    occupied: int = 0
    available: int = 0
    rooms: List[AvailabilityRoom] = Field(default_factory=list)


class RoomAvailabilityStats(BaseSchema):
    """Bed counts grouped by AC/non-AC, then by room type."""

    ac: Dict[str, AvailabilityBucket] = Field(default_factory=dict)
    non_ac: Dict[str, AvailabilityBucket] = Field(default_factory=dict)
    total_beds: int = 0
    occupied_beds: int = 0
    available_beds: int = 0
