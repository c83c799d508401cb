# --- File: hostel_ledger/schemas/ledger/manual_entry.py ---
"""
Manual ledger entry schemas.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import Field, model_validator

from hostel_ledger.models.base import LedgerEntryKind, LedgerTag, SettlementAccount
from hostel_ledger.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    MoneyAmount,
)

__all__ = [
    "ManualEntryCreate",
    "ManualEntryResponse",
    "ShiftAccountRequest",
]


class ManualEntryCreate(BaseCreateSchema):
    """Amount collected into, or booked against, a settlement account."""

    entry_date: date = Field(..., alias="date")
    kind: LedgerEntryKind
    account: SettlementAccount
    amount: MoneyAmount
    voucher: Optional[str] = Field(default=None, max_length=100)
    payment_method: Optional[str] = Field(default=None, max_length=30)
    description: Optional[str] = Field(default=None, max_length=500)
    tag: Optional[LedgerTag] = None
    billing_entry_id: Optional[str] = Field(
        default=None,
        description="Billing entry this amount was collected against",
    )
    details: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_marker(self) -> "ManualEntryCreate":
        if self.tag == LedgerTag.ROOM_SHIFT and self.amount != Decimal("0"):
            raise ValueError("Room shift markers carry no amount")
        return self


class ManualEntryResponse(BaseResponseSchema):
    occupant_id: str
    entry_date: date
    kind: LedgerEntryKind
    account: SettlementAccount
    amount: Decimal
    voucher: Optional[str] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None
    tag: Optional[LedgerTag] = None
    billing_entry_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ShiftAccountRequest(BaseSchema):
    target_account: SettlementAccount
