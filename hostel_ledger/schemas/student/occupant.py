# --- File: hostel_ledger/schemas/student/occupant.py ---
"""
Occupant (student) schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from hostel_ledger.models.base import OccupantStatus
from hostel_ledger.schemas.common.base import BaseCreateSchema, BaseResponseSchema

__all__ = [
    "OccupantCreate",
    "OccupantResponse",
]


class OccupantCreate(BaseCreateSchema):
    """Register a new occupant."""

    external_id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Institution-issued student id",
    )
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=20)
    enrollment_date: Optional[date] = Field(
        default=None,
        description="First day of stay; anchors the first package",
    )
    status: OccupantStatus = Field(default=OccupantStatus.ACTIVE)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v: OccupantStatus) -> OccupantStatus:
        if v not in (OccupantStatus.ACTIVE, OccupantStatus.REGISTERED):
            raise ValueError("New occupants start as active or registered")
        return v


class OccupantResponse(BaseResponseSchema):
    external_id: str
    name: str
    email: str
    phone: Optional[str] = None
    status: OccupantStatus

    current_room_id: Optional[str] = None
    allocation_date: Optional[datetime] = None
    enrollment_date: Optional[date] = None
    admission_through_date: Optional[date] = None
    package_duration_months: Optional[int] = None

    has_pending_fees: bool = False
    total_pending_amount: Decimal = Decimal("0.00")
    pending_fees_from: Optional[date] = None
    pending_fees_until: Optional[date] = None
