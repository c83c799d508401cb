# hostel_ledger/models/fee/billing_entry.py
"""
Billing entry (fee) model.

One row per charge: a whole multi-month package, an ad hoc charge, a
transfer adjustment or a checkout refund. Month-level breakdown is not
stored; the ledger projection derives it.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import (
    OPEN_FEE_STATUSES,
    FeeKind,
    FeeSource,
    FeeStatus,
)
from hostel_ledger.utils.date_utils import today
from hostel_ledger.utils.money import ZERO, to_money

__all__ = ["BillingEntry"]


def _money_column(comment: Optional[str] = None):
    return mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment=comment,
    )


class BillingEntry(TimestampModel):
    """Charge raised against an occupant."""

    __tablename__ = "billing_entries"

    occupant_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("occupants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    kind: Mapped[FeeKind] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[FeeSource] = mapped_column(
        String(20),
        nullable=False,
        default=FeeSource.MANUAL,
    )
    related_entry_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("billing_entries.id", ondelete="SET NULL"),
        nullable=True,
        comment="Package a refund or transfer adjustment belongs to",
    )

    # Amounts
    total_amount: Mapped[Decimal] = _money_column()
    rent_amount: Mapped[Decimal] = _money_column("Rent component of total_amount")
    mess_amount: Mapped[Decimal] = _money_column("Mess component of total_amount")
    deposit_amount: Mapped[Decimal] = _money_column("Deposit component of total_amount")
    paid_amount: Mapped[Decimal] = _money_column()
    remaining_balance: Mapped[Decimal] = _money_column()

    # Settlement split across the two external accounts
    account_a_amount: Mapped[Decimal] = _money_column()
    account_b_amount: Mapped[Decimal] = _money_column()
    account_a_voucher: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    account_b_voucher: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Lifecycle
    status: Mapped[FeeStatus] = mapped_column(
        String(20),
        nullable=False,
        default=FeeStatus.PENDING,
        index=True,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    package_duration_months: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    check_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Room snapshot at charge time
    room_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bed_label: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    room_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Checkout
    checkout_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    refund_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    refund_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    actual_stay_months: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_billing_occupant_status", "occupant_id", "status"),
    )

    # ------------------------------------------------------------------ #
    # Derived views
    # ------------------------------------------------------------------ #
    @property
    def is_package(self) -> bool:
        return self.kind == FeeKind.PACKAGE

    @property
    def outstanding(self) -> Decimal:
        """Amount still owed on this entry."""
        if self.status not in OPEN_FEE_STATUSES:
            return ZERO
        return max(ZERO, to_money(self.total_amount) - to_money(self.paid_amount))

    @property
    def components(self) -> Dict[str, Decimal]:
        return {
            "rent": to_money(self.rent_amount),
            "mess": to_money(self.mess_amount),
            "deposit": to_money(self.deposit_amount),
        }

    @property
    def room_snapshot(self) -> Dict[str, Any]:
        return {
            "room_number": self.room_number,
            "bed_label": self.bed_label,
            "room_type": self.room_type,
        }

    @property
    def settlement_split(self) -> Dict[str, Any]:
        return {
            "account_a_amount": to_money(self.account_a_amount),
            "account_b_amount": to_money(self.account_b_amount),
            "account_a_voucher": self.account_a_voucher,
            "account_b_voucher": self.account_b_voucher,
        }

    @property
    def checkout(self) -> Optional[Dict[str, Any]]:
        if self.checkout_date is None:
            return None
        return {
            "check_out_date": self.checkout_date,
            "refund_amount": to_money(self.refund_amount),
            "refund_reason": self.refund_reason,
            "actual_stay_months": self.actual_stay_months,
        }

    def refresh_derived_status(self, on: Optional[date] = None) -> None:
        """
        Keep status/balance consistent before every write.

        - open entries carry remaining_balance = total - paid
        - pending becomes overdue once the due date has passed
        """
        if self.status in OPEN_FEE_STATUSES:
            self.remaining_balance = max(
                ZERO, to_money(self.total_amount) - to_money(self.paid_amount)
            )
        if self.status == FeeStatus.PENDING and self.due_date is not None:
            if self.due_date < (on or today()):
                self.status = FeeStatus.OVERDUE.value

    def __repr__(self) -> str:
        return (
            f"<BillingEntry(id={self.id}, kind={self.kind}, "
            f"total={self.total_amount}, status={self.status})>"
        )


@event.listens_for(BillingEntry, "before_insert")
@event.listens_for(BillingEntry, "before_update")
def receive_before_save(mapper, connection, target: BillingEntry):
    """Recompute derived status on every save."""
    target.refresh_derived_status()
