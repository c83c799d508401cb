# --- File: hostel_ledger/schemas/ledger/ledger_view.py ---
"""
Ledger projection responses: sessions, flat ledger rows and summary.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from hostel_ledger.schemas.common.base import BaseSchema

__all__ = [
    "Period",
    "SessionLine",
    "SessionItem",
    "SessionRefunds",
    "LedgerSession",
    "LedgerRow",
    "LedgerSummary",
    "LedgerResponse",
]


class Period(BaseSchema):
    start: date
    end: date


class SessionLine(BaseSchema):
    id: str
    component: str
    amount: Decimal
    start: date
    end: date
    description: str
    billing_entry_id: Optional[str] = None


class SessionItem(BaseSchema):
    """Payment or adjustment matched into a session."""

    id: str
    on: date = Field(..., alias="date")
    amount: Decimal
    kind: str
    source: str
    account: Optional[str] = None
    tag: Optional[str] = None
    component: Optional[str] = None
    voucher: Optional[str] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None
    billing_entry_id: Optional[str] = None


class SessionRefunds(BaseSchema):
    entries: List[Dict[str, Any]] = Field(default_factory=list)
    total: Decimal = Decimal("0.00")
    paid_out: Decimal = Decimal("0.00")


class LedgerSession(BaseSchema):
    id: str
    billing_entry_id: Optional[str] = None
    kind: str
    period: Period
    due_date: Optional[date] = None
    room_snapshot: Dict[str, Optional[str]] = Field(default_factory=dict)
    component_totals: Dict[str, Decimal]
    paid_by_component: Dict[str, Decimal]
    due_by_component: Dict[str, Decimal]
    credit: Decimal
    total: Decimal
    total_paid: Decimal
    total_due: Decimal
    lines: List[SessionLine] = Field(default_factory=list)
    payments: List[SessionItem] = Field(default_factory=list)
    adjustments: List[SessionItem] = Field(default_factory=list)
    payable_adjustments: List[Dict[str, Any]] = Field(default_factory=list)
    refunds: SessionRefunds
    status: str
    payment_status: str
    is_active: bool
    is_fallback: bool


class LedgerRow(BaseSchema):
    on: date = Field(..., alias="date")
    description: Optional[str] = None
    debit: Decimal
    credit: Decimal
    balance: Decimal
    source: str
    reference_id: str
    account: Optional[str] = None
    tag: Optional[str] = None
    voucher: Optional[str] = None
    payment_method: Optional[str] = None


class LedgerSummary(BaseSchema):
    admission_date: Optional[date] = None
    admission_through_date: Optional[date] = None
    stay_duration_days: int
    stay_duration_months: int
    total_fees: Decimal
    total_paid: Decimal
    total_pending: Decimal
    total_deposit: Decimal
    deposit_paid: Decimal
    refundable_deposit: Decimal
    total_refunded: Decimal
    current_balance: Decimal
    total_due: Decimal
    total_transactions: int


class LedgerResponse(BaseSchema):
    occupant_id: str
    sessions: List[LedgerSession] = Field(default_factory=list)
    ledger: List[LedgerRow] = Field(default_factory=list)
    summary: LedgerSummary
