# hostel_ledger/models/room/room.py
"""
Room inventory model.

A room owns a fixed array of labeled beds (one per unit of capacity) and a
list of occupant ids. The bed array is the ground truth for who sleeps
where; `occupied` and `status` are cached values derived from it and from
the occupant list by the allocation engine.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import JSON, Boolean, Index, Integer, Numeric, String
from sqlalchemy.ext.mutable import MutableDict, MutableList
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import RoomStatus, RoomType
from hostel_ledger.utils.money import to_money

__all__ = ["Room"]


class Room(TimestampModel):
    """Physical room with beds, pricing and cached occupancy."""

    __tablename__ = "rooms"

    # Identification
    room_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )
    floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    building: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Type and Capacity
    room_type: Mapped[RoomType] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    is_ac: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )

    # Occupancy (cached, derived from beds/occupant_ids)
    status: Mapped[RoomStatus] = mapped_column(
        String(20),
        nullable=False,
        default=RoomStatus.AVAILABLE,
        index=True,
    )
    occupied: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    occupant_ids: Mapped[List[str]] = mapped_column(
        MutableList.as_mutable(JSON),
        nullable=False,
        default=list,
    )

    # Pricing
    base_rent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Monthly rent used when the rent table has no entry for a duration",
    )
    rent_table: Mapped[Dict[str, str]] = mapped_column(
        MutableDict.as_mutable(JSON),
        nullable=False,
        default=dict,
        comment="Months (as string) -> monthly rent for packages of that length",
    )
    mess_charge_per_month: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )

    # Relationships
    beds = relationship(
        "Bed",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="Bed.slot_index",
    )
    occupants = relationship(
        "Occupant",
        back_populates="current_room",
        foreign_keys="Occupant.current_room_id",
    )

    __table_args__ = (
        Index("ix_room_type_ac", "room_type", "is_ac"),
    )

    def __repr__(self) -> str:
        return (
            f"<Room(id={self.id}, room_number={self.room_number}, "
            f"type={self.room_type}, status={self.status})>"
        )

    # ------------------------------------------------------------------ #
    # Pricing helpers
    # ------------------------------------------------------------------ #
    def set_rent_table(self, table: Optional[Dict[int, Decimal]]) -> None:
        """Store a months -> monthly rent mapping in its JSON form."""
        self.rent_table = {
            str(int(months)): str(to_money(amount))
            for months, amount in (table or {}).items()
        }

    def rent_for(self, months: int) -> Optional[Decimal]:
        """Monthly rent listed for a package of `months`, or None."""
        value = (self.rent_table or {}).get(str(months))
        return to_money(value) if value is not None else None

    # ------------------------------------------------------------------ #
    # Occupancy helpers
    # ------------------------------------------------------------------ #
    @property
    def occupied_bed_count(self) -> int:
        return sum(1 for bed in self.beds if bed.is_occupied)

    @property
    def free_beds(self) -> list:
        return [bed for bed in self.beds if not bed.is_occupied]

    @property
    def is_full(self) -> bool:
        return self.occupied >= self.capacity

    def bed_by_label(self, label: Optional[str]):
        """Case-insensitive bed lookup by label."""
        if not label:
            return None
        wanted = label.strip().upper()
        for bed in self.beds:
            if bed.label.upper() == wanted:
                return bed
        return None
