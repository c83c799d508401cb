# hostel_ledger/models/student/occupant.py
"""
Occupant (student) model.

The pending-fee columns are a denormalized cache. They are written only by
the billing engine's pending-fee recompute; everything else reads them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import OccupantStatus

__all__ = ["Occupant"]


class Occupant(TimestampModel):
    """Resident of the hostel."""

    __tablename__ = "occupants"

    # Identity
    external_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Institution-issued student id",
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    status: Mapped[OccupantStatus] = mapped_column(
        String(20),
        nullable=False,
        default=OccupantStatus.ACTIVE,
        index=True,
    )

    # Residency
    current_room_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    allocation_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    enrollment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    admission_through_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    package_duration_months: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Pending-fee cache
    has_pending_fees: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_pending_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    pending_fees_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    pending_fees_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Relationships
    current_room = relationship(
        "Room",
        back_populates="occupants",
        foreign_keys=[current_room_id],
    )

    @validates("email")
    def normalize_email(self, key, value: str) -> str:
        return value.strip().lower() if value else value

    @property
    def is_inactive(self) -> bool:
        return self.status == OccupantStatus.INACTIVE

    @property
    def pending_fee_cache(self) -> Dict[str, Any]:
        return {
            "has_pending": self.has_pending_fees,
            "total_amount": self.total_pending_amount,
            "earliest_due": self.pending_fees_from,
            "latest_due": self.pending_fees_until,
        }

    def __repr__(self) -> str:
        return f"<Occupant(id={self.id}, external_id={self.external_id}, status={self.status})>"
