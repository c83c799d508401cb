# --- File: hostel_ledger/schemas/fee/billing_entry.py ---
"""
Billing entry schemas: package generation, ad hoc charges, payments,
checkout and responses.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from hostel_ledger.models.base import (
    BED_LABELS,
    MANUAL_FEE_KINDS,
    Component,
    FeeKind,
    FeeSource,
    FeeStatus,
    PaymentMethod,
)
from hostel_ledger.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    MoneyAmount,
    WarningsMixin,
)
from hostel_ledger.schemas.room.room_base import RoomSummary

__all__ = [
    "CollectionItem",
    "GeneratePackageRequest",
    "ChargeCreate",
    "ApplyPaymentRequest",
    "SplitPaymentRequest",
    "CheckoutRequest",
    "BillingEntryResponse",
    "GeneratePackageResponse",
    "PaymentResponse",
    "CheckoutResponse",
]


class CollectionItem(BaseSchema):
    """Amount collected for one package component at generation time."""

    component: Component
    amount: MoneyAmount = Field(..., gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    voucher: Optional[str] = Field(default=None, max_length=100)
    collected_on: Optional[date] = Field(default=None, alias="date")


class GeneratePackageRequest(BaseSchema):
    duration_months: int = Field(..., ge=1, description="Package length in months")
    due_date: Optional[date] = None
    collection_plan: List[CollectionItem] = Field(default_factory=list)


class ChargeCreate(BaseCreateSchema):
    """Ad hoc charge raised by an operator."""

    occupant_id: str = Field(..., min_length=1)
    kind: FeeKind = FeeKind.OTHER
    total_amount: MoneyAmount = Field(..., gt=0)
    due_date: date
    description: Optional[str] = Field(default=None, max_length=500)

    rent_amount: Optional[MoneyAmount] = None
    mess_amount: Optional[MoneyAmount] = None
    deposit_amount: Optional[MoneyAmount] = None
    package_duration_months: Optional[int] = Field(default=None, ge=1)
    check_in_date: Optional[date] = None

    room_number: Optional[str] = Field(default=None, max_length=50)
    bed_label: Optional[str] = None

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: FeeKind) -> FeeKind:
        if v not in MANUAL_FEE_KINDS:
            raise ValueError(
                f"Charge kind must be one of: {', '.join(kind.value for kind in MANUAL_FEE_KINDS)}"
            )
        return v

    @field_validator("bed_label")
    @classmethod
    def validate_bed_label(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        v = v.strip().upper()
        if v not in BED_LABELS:
            raise ValueError(f"Bed label must be one of: {', '.join(BED_LABELS)}")
        return v

    @model_validator(mode="after")
    def validate_components(self) -> "ChargeCreate":
        parts = [self.rent_amount, self.mess_amount, self.deposit_amount]
        if any(part is not None for part in parts):
            given = sum((part for part in parts if part is not None), Decimal("0"))
            if given != self.total_amount:
                raise ValueError("Component amounts must add up to the total amount")
        return self


class ApplyPaymentRequest(BaseSchema):
    payment_method: str = Field(..., min_length=1)
    transaction_id: Optional[str] = Field(default=None, max_length=100)
    payment_date: Optional[date] = None


class SplitPaymentRequest(BaseSchema):
    account_a_amount: MoneyAmount = Decimal("0")
    account_b_amount: MoneyAmount = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.CASH
    account_a_voucher: Optional[str] = Field(default=None, max_length=100)
    account_b_voucher: Optional[str] = Field(default=None, max_length=100)
    payment_date: Optional[date] = None


class CheckoutRequest(BaseSchema):
    check_out_date: Optional[date] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class BillingEntryResponse(BaseResponseSchema):
    occupant_id: Optional[str] = None
    kind: FeeKind
    description: Optional[str] = None
    source: FeeSource
    related_entry_id: Optional[str] = None

    total_amount: Decimal
    rent_amount: Decimal
    mess_amount: Decimal
    deposit_amount: Decimal
    paid_amount: Decimal
    remaining_balance: Decimal

    account_a_amount: Decimal
    account_b_amount: Decimal
    account_a_voucher: Optional[str] = None
    account_b_voucher: Optional[str] = None

    status: FeeStatus
    due_date: date
    package_duration_months: Optional[int] = None
    check_in_date: Optional[date] = None
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None

    room_number: Optional[str] = None
    bed_label: Optional[str] = None
    room_type: Optional[str] = None

    checkout_date: Optional[date] = None
    refund_amount: Optional[Decimal] = None
    refund_reason: Optional[str] = None
    actual_stay_months: Optional[int] = None


class GeneratePackageResponse(WarningsMixin, BaseSchema):
    billing_entry: BillingEntryResponse
    ledger_entries_created: int = 0
    deposit_included: bool


class PaymentResponse(WarningsMixin, BaseSchema):
    billing_entry: BillingEntryResponse
    ledger_entries_created: int = 0


class CheckoutResponse(WarningsMixin, BaseSchema):
    billing_entry: BillingEntryResponse
    refund_amount: Decimal
    refund_entry: Optional[BillingEntryResponse] = None
    room: Optional[RoomSummary] = None
