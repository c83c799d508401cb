# --- File: hostel_ledger/schemas/room/room_base.py ---
"""
Room inventory schemas: creation, metadata/pricing updates and responses.

Beds and occupancy are never accepted as input; they are owned by the
allocation engine.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from hostel_ledger.models.base import ROOM_TYPE_CAPACITY, RoomStatus, RoomType
from hostel_ledger.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    MoneyAmount,
)

__all__ = [
    "RoomCreate",
    "RoomUpdate",
    "BedResponse",
    "RoomResponse",
    "RoomSummary",
]

# Statuses an operator may set directly; "occupied" is always derived
_SETTABLE_STATUSES = (RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE, RoomStatus.UNAVAILABLE)


def _check_rent_table(value: Optional[Dict[int, Decimal]]) -> Optional[Dict[int, Decimal]]:
    if value is None:
        return value
    for months in value:
        if months < 1 or months > 5:
            raise ValueError("Rent table durations must be between 1 and 5 months")
    return value


class RoomCreate(BaseCreateSchema):
    """Inventory setup for one room."""

    room_number: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Room number/identifier (e.g., '101', 'A-201')",
        examples=["101", "A-201"],
    )
    floor: Optional[int] = Field(default=None, ge=0, le=50)
    building: Optional[str] = Field(default=None, max_length=100)

    room_type: RoomType = Field(..., description="Room occupancy type")
    capacity: Optional[int] = Field(
        default=None,
        ge=1,
        le=4,
        description="Bed count; defaults to the room type's capacity",
    )
    is_ac: bool = Field(default=False, description="Air conditioning available")

    base_rent: MoneyAmount = Field(..., description="Monthly rent when the rent table has no entry")
    rent_table: Dict[int, MoneyAmount] = Field(
        default_factory=dict,
        description="Package length in months -> monthly rent",
        examples=[{1: "6000", 5: "5000"}],
    )
    mess_charge_per_month: Optional[MoneyAmount] = Field(
        default=None,
        description="Monthly mess charge; the hostel default applies when empty",
    )
    status: RoomStatus = Field(default=RoomStatus.AVAILABLE)

    @field_validator("room_number")
    @classmethod
    def validate_room_number(cls, v: str) -> str:
        v = " ".join(v.split())
        if not v:
            raise ValueError("Room number cannot be empty")
        return v

    @field_validator("rent_table")
    @classmethod
    def validate_rent_table(cls, v: Dict[int, Decimal]) -> Dict[int, Decimal]:
        return _check_rent_table(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: RoomStatus) -> RoomStatus:
        if v not in _SETTABLE_STATUSES:
            raise ValueError("A new room can only be available, maintenance or unavailable")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_capacity(cls, data):
        if isinstance(data, dict) and data.get("capacity") is None:
            try:
                data = {**data, "capacity": ROOM_TYPE_CAPACITY[RoomType(data.get("room_type"))]}
            except ValueError:
                # unknown room_type is reported by field validation
                pass
        return data

    @model_validator(mode="after")
    def validate_capacity_matches_type(self) -> "RoomCreate":
        expected = ROOM_TYPE_CAPACITY[self.room_type]
        if self.capacity != expected:
            raise ValueError(
                f"Capacity {self.capacity} does not match room type "
                f"{self.room_type.value}. Expected capacity: {expected}"
            )
        return self


class RoomUpdate(BaseUpdateSchema):
    """Partial update of metadata, pricing or the status override."""

    floor: Optional[int] = Field(default=None, ge=0, le=50)
    building: Optional[str] = Field(default=None, max_length=100)
    is_ac: Optional[bool] = None
    base_rent: Optional[MoneyAmount] = None
    rent_table: Optional[Dict[int, MoneyAmount]] = None
    mess_charge_per_month: Optional[MoneyAmount] = None
    status: Optional[RoomStatus] = None

    @field_validator("rent_table")
    @classmethod
    def validate_rent_table(cls, v: Optional[Dict[int, Decimal]]) -> Optional[Dict[int, Decimal]]:
        return _check_rent_table(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[RoomStatus]) -> Optional[RoomStatus]:
        if v is not None and v not in _SETTABLE_STATUSES:
            raise ValueError("Room status 'occupied' is derived from occupancy and cannot be set")
        return v


class BedResponse(BaseSchema):
    slot_index: int
    label: str
    is_occupied: bool
    occupant_id: Optional[str] = None


class RoomResponse(BaseResponseSchema):
    """Room with its bed array and cached occupancy."""

    room_number: str
    floor: Optional[int] = None
    building: Optional[str] = None
    room_type: RoomType
    capacity: int
    is_ac: bool
    status: RoomStatus
    occupied: int
    occupant_ids: List[str] = Field(default_factory=list)
    base_rent: Decimal
    rent_table: Dict[str, Decimal] = Field(default_factory=dict)
    mess_charge_per_month: Optional[Decimal] = None
    beds: List[BedResponse] = Field(default_factory=list)


class RoomSummary(BaseSchema):
    """Compact room view used inside allocation and transfer responses."""

    id: str
    room_number: str
    room_type: RoomType
    status: RoomStatus
    capacity: int
    occupied: int
    occupant_ids: List[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None
