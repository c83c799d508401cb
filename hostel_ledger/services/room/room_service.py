"""
Room inventory service.

Handles room setup, metadata and pricing updates, listings and the
availability breakdown. Occupancy itself is owned by AllocationService.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from hostel_ledger.config.settings import settings
from hostel_ledger.core.exceptions import DuplicateKeyError, InvalidStateError, NotFoundError
from hostel_ledger.models.base import BED_LABELS, RoomStatus, RoomType
from hostel_ledger.models.room import Bed, Room
from hostel_ledger.repositories.room import RoomRepository
from hostel_ledger.schemas.room import RoomCreate, RoomUpdate
from hostel_ledger.services.allocation.occupancy import recompute_status
from hostel_ledger.services.base import BaseService, ServiceResult
from hostel_ledger.utils.money import to_money


class RoomService(BaseService[Room, RoomRepository]):
    """Room inventory management."""

    def __init__(self, repository: RoomRepository, db_session: Session):
        super().__init__(repository, db_session)

    def create_room(self, request: RoomCreate) -> ServiceResult[Room]:
        """
        Create a room with one bed per unit of capacity, labeled A..D.

        Capacity/type agreement is enforced by the request schema.
        """
        try:
            if self.repository.find_by_room_number(request.room_number):
                raise DuplicateKeyError("room_number", request.room_number)

            room = Room(
                room_number=request.room_number,
                floor=request.floor,
                building=request.building,
                room_type=request.room_type.value,
                capacity=request.capacity,
                is_ac=request.is_ac,
                status=request.status.value,
                occupied=0,
                occupant_ids=[],
                base_rent=to_money(request.base_rent),
                mess_charge_per_month=(
                    to_money(request.mess_charge_per_month)
                    if request.mess_charge_per_month is not None
                    else None
                ),
            )
            room.set_rent_table(request.rent_table)
            room.beds = [
                Bed(slot_index=index, label=BED_LABELS[index])
                for index in range(request.capacity)
            ]

            room = self.repository.create(room)
            self._log_operation(
                "Room created",
                room.id,
                {"room_number": room.room_number, "room_type": room.room_type, "capacity": room.capacity},
            )
            return ServiceResult.success(room, message="Room created successfully")
        except Exception as e:
            return self._handle_exception(e, "create room", request.room_number)

    def get_room(self, room_ref: str) -> ServiceResult[Room]:
        try:
            room = self.repository.find_by_id_or_number(room_ref)
            if room is None:
                raise NotFoundError("Room", room_ref)
            return ServiceResult.success(room)
        except Exception as e:
            return self._handle_exception(e, "get room", room_ref)

    def list_rooms(
        self,
        status: Optional[RoomStatus] = None,
        room_type: Optional[RoomType] = None,
        is_ac: Optional[bool] = None,
    ) -> ServiceResult[List[Room]]:
        try:
            rooms = self.repository.list_rooms(
                status=status.value if status else None,
                room_type=room_type.value if room_type else None,
                is_ac=is_ac,
            )
            return ServiceResult.success(rooms, metadata={"count": len(rooms)})
        except Exception as e:
            return self._handle_exception(e, "list rooms")

    def list_available_rooms(self) -> ServiceResult[List[Room]]:
        """Rooms with status available and at least one free place."""
        try:
            rooms = self.repository.list_available()
            return ServiceResult.success(rooms, metadata={"count": len(rooms)})
        except Exception as e:
            return self._handle_exception(e, "list available rooms")

    def update_room(self, room_id: str, request: RoomUpdate) -> ServiceResult[Room]:
        """
        Update metadata, pricing or the status override.

        Beds and occupancy are never touched. Setting status back to
        available re-derives it from occupancy (a full room reads occupied).
        """
        try:
            room = self.repository.find_by_id(room_id)
            if room is None:
                raise NotFoundError("Room", room_id)

            changes = request.model_dump(exclude_unset=True)
            rent_table = changes.pop("rent_table", None)
            status = changes.pop("status", None)

            for key in ("base_rent", "mess_charge_per_month"):
                if key in changes and changes[key] is not None:
                    changes[key] = to_money(changes[key])

            for key, value in changes.items():
                setattr(room, key, value)
            if rent_table is not None:
                room.set_rent_table(rent_table)

            if status is not None:
                room.status = RoomStatus(status).value
                if status == RoomStatus.AVAILABLE:
                    recompute_status(room)

            room = self.repository.save(room)
            self._log_operation(
                "Room updated",
                room.id,
                {"fields": sorted(request.model_dump(exclude_unset=True).keys())},
            )
            return ServiceResult.success(room, message="Room updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update room", room_id)

    def delete_room(self, room_id: str) -> ServiceResult[Dict[str, Any]]:
        """Delete a room; rejected while any bed is occupied."""
        try:
            room = self.repository.find_by_id(room_id)
            if room is None:
                raise NotFoundError("Room", room_id)
            if room.occupied > 0 or room.occupied_bed_count > 0:
                raise InvalidStateError(
                    "Cannot delete room with occupants. Please deallocate all occupants first.",
                    {"room_id": room.id, "occupied": room.occupied},
                )

            room_number = room.room_number
            self.repository.delete(room)
            self._log_operation("Room deleted", room_id, {"room_number": room_number})
            return ServiceResult.success({"id": room_id, "room_number": room_number}, message="Room deleted")
        except Exception as e:
            return self._handle_exception(e, "delete room", room_id)

    def availability_stats(self) -> ServiceResult[Dict[str, Any]]:
        """
        Bed availability grouped by AC/non-AC and room type.

        Counts come from the bed array, not the cached occupied value.
        Maintenance rooms are excluded.
        """
        try:
            rooms = self.repository.list_excluding_status(RoomStatus.MAINTENANCE.value)

            def empty_section() -> Dict[str, Dict[str, Any]]:
                return {
                    room_type.value: {"total": 0, "occupied": 0, "available": 0, "rooms": []}
                    for room_type in RoomType
                }

            stats: Dict[str, Any] = {"ac": empty_section(), "non_ac": empty_section()}
            totals = {"total_beds": 0, "occupied_beds": 0, "available_beds": 0}

            for room in rooms:
                section = stats["ac" if room.is_ac else "non_ac"]
                bucket = section.get(str(RoomType(room.room_type).value))
                if bucket is None:
                    continue

                occupied = room.occupied_bed_count
                available = max(0, room.capacity - occupied)
                bucket["total"] += room.capacity
                bucket["occupied"] += occupied
                bucket["available"] += available
                bucket["rooms"].append(
                    {
                        "room_id": room.id,
                        "room_number": room.room_number,
                        "building": room.building,
                        "floor": room.floor,
                        "capacity": room.capacity,
                        "occupied": occupied,
                        "available": available,
                        "free_beds": [bed.label for bed in room.free_beds],
                        "base_rent": to_money(room.base_rent),
                        "mess_charge_per_month": to_money(
                            room.mess_charge_per_month
                            if room.mess_charge_per_month is not None
                            else settings.DEFAULT_MESS_CHARGE_PER_MONTH
                        ),
                        "status": str(RoomStatus(room.status).value),
                    }
                )
                totals["total_beds"] += room.capacity
                totals["occupied_beds"] += occupied
                totals["available_beds"] += available

            stats.update(totals)
            return ServiceResult.success(stats)
        except Exception as e:
            return self._handle_exception(e, "room availability stats")
