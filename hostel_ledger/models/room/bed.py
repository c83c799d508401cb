# hostel_ledger/models/room/bed.py
"""
Bed model: one labeled slot inside a room.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.models.base.base_model import BaseModel

__all__ = ["Bed"]


class Bed(BaseModel):
    """
    Individual bed within a room.

    `occupant_id` is a plain reference (no foreign key) so that stale
    references left behind by interrupted writes can be stored and later
    cleaned up by the room repair operation.
    """

    __tablename__ = "beds"

    room_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slot_index: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[str] = mapped_column(String(2), nullable=False)

    is_occupied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    occupant_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )

    room = relationship("Room", back_populates="beds")

    __table_args__ = (
        UniqueConstraint("room_id", "label", name="uq_bed_room_label"),
    )

    def occupy(self, occupant_id: str) -> None:
        self.is_occupied = True
        self.occupant_id = occupant_id

    def vacate(self) -> None:
        self.is_occupied = False
        self.occupant_id = None

    def __repr__(self) -> str:
        return f"<Bed(room_id={self.room_id}, label={self.label}, occupied={self.is_occupied})>"
