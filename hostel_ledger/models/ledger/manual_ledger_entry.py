# hostel_ledger/models/ledger/manual_ledger_entry.py
"""
Manual ledger entries: amounts collected into (or paid out of) the two
settlement accounts, transfer adjustments and informational room-shift
markers. They are not tied 1:1 to a billing entry; the ledger projection
matches them to sessions.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import LedgerEntryKind, LedgerTag, SettlementAccount

__all__ = ["ManualLedgerEntry"]


class ManualLedgerEntry(TimestampModel):
    """Ad hoc settlement-account entry."""

    __tablename__ = "manual_ledger_entries"

    occupant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("occupants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    kind: Mapped[LedgerEntryKind] = mapped_column(String(10), nullable=False)
    account: Mapped[SettlementAccount] = mapped_column(String(1), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    voucher: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tag: Mapped[Optional[LedgerTag]] = mapped_column(String(20), nullable=True)
    billing_entry_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("billing_entries.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    details: Mapped[Dict[str, Any]] = mapped_column(
        MutableDict.as_mutable(JSON),
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_manual_ledger_amount_non_negative"),
        Index("ix_manual_ledger_occupant_date", "occupant_id", "entry_date"),
    )

    @property
    def is_credit(self) -> bool:
        return self.kind == LedgerEntryKind.PAYMENT

    @property
    def is_room_shift_marker(self) -> bool:
        return self.tag == LedgerTag.ROOM_SHIFT

    def __repr__(self) -> str:
        return (
            f"<ManualLedgerEntry(id={self.id}, kind={self.kind}, "
            f"account={self.account}, amount={self.amount})>"
        )
