"""
Allocation engine: the only code that mutates a room's bed array,
occupant list, occupied count and derived status.

Writes follow the one-commit-per-document rule: the room is committed
first, the occupant link afterwards on a best-effort basis. A failed
occupant write leaves the room committed and is reported as a warning;
`fix_room_status` repairs the drift.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationFailureError,
)
from hostel_ledger.models.base import OccupantStatus, RoomStatus
from hostel_ledger.models.room import Bed, Room
from hostel_ledger.models.student import Occupant
from hostel_ledger.repositories.room import RoomRepository
from hostel_ledger.repositories.student import OccupantRepository
from hostel_ledger.services.allocation.occupancy import (
    OVERRIDE_STATUSES,
    beds_held_by,
    has_occupant_ref,
    normalize_id,
    occupancy_consistent,
    recompute_status,
    remove_occupant_ref,
    same_occupant,
    unique_ids,
)
from hostel_ledger.services.base import BaseService, ServiceResult
from hostel_ledger.utils.date_utils import utcnow


class AllocationService(BaseService[Room, RoomRepository]):
    """
    Bed assignment, release, transfer and repair.

    Public methods return ServiceResult. The `seat`, `unseat` and `move`
    steps raise domain exceptions instead so the billing engine can
    compose them into checkout and transfer flows.
    """

    def __init__(
        self,
        repository: RoomRepository,
        db_session: Session,
        occupant_repository: Optional[OccupantRepository] = None,
    ):
        super().__init__(repository, db_session)
        self.occupant_repository = occupant_repository or OccupantRepository(db_session)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_room(self, room_id: str) -> Room:
        room = self.repository.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        return room

    def _get_occupant(self, occupant_id: str) -> Occupant:
        return self.occupant_repository.get_by_id(occupant_id)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def assign_bed(
        self,
        room_id: str,
        occupant_id: str,
        desired_label: Optional[str] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Seat an occupant in a room.

        Picks the requested bed (case-insensitive label) or the first free
        one. Fails with INVALID_STATE when the room is full, the occupant is
        already allocated or the requested bed is taken.
        """
        try:
            room = self._get_room(room_id)
            occupant = self._get_occupant(occupant_id)
            warnings: List[str] = []

            bed_label = self.seat(room, occupant, desired_label, warnings)

            return ServiceResult.success(
                {
                    "room": room,
                    "occupant_id": occupant.id,
                    "bed_label": bed_label,
                    "warnings": warnings,
                },
                message=f"Bed {bed_label} allocated",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(
                e, "allocate bed", room_id, {"occupant_id": occupant_id, "bed_label": desired_label}
            )

    def release_bed(self, room_id: str, occupant_id: str) -> ServiceResult[Dict[str, Any]]:
        """
        Free every bed the occupant holds in the room.

        Idempotent: releasing an occupant that holds nothing only
        re-derives the occupied count from the occupant list.
        """
        try:
            room = self._get_room(room_id)
            occupant = self._get_occupant(occupant_id)
            warnings: List[str] = []

            released = self.unseat(room, occupant.id, warnings, occupant=occupant)

            return ServiceResult.success(
                {
                    "room": room,
                    "occupant_id": occupant.id,
                    "released_beds": released,
                    "warnings": warnings,
                },
                message="Bed released" if released else "Occupant held no bed in this room",
                warnings=warnings,
            )
        except Exception as e:
            return self._handle_exception(e, "release bed", room_id, {"occupant_id": occupant_id})

    def fix_room_status(self, room_ref: str) -> ServiceResult[Dict[str, Any]]:
        """
        Repair a room from its bed array and the set of valid occupants.

        Valid occupants are those whose current room is this room. Beds
        pointing anywhere else are cleared, valid occupants without a bed
        are seated in free beds, the occupant list is rebuilt from the valid
        set and occupied/status are re-derived. Maintenance is preserved.
        """
        try:
            room = self.repository.find_by_id_or_number(room_ref)
            if room is None:
                raise NotFoundError("Room", room_ref)

            previous_occupied = room.occupied
            previous_status = str(getattr(room.status, "value", room.status))

            valid = self.occupant_repository.list_in_room(room.id)
            valid_ids = {normalize_id(o.id): o.id for o in valid}

            cleared: List[str] = []
            seated_ids = set()
            for bed in room.beds:
                ref = normalize_id(bed.occupant_id)
                if not bed.is_occupied and not ref:
                    continue
                # stale flag, unknown occupant or a second bed for the same occupant
                if not ref or ref not in valid_ids or ref in seated_ids:
                    bed.vacate()
                    cleared.append(bed.label)
                    continue
                bed.is_occupied = True
                seated_ids.add(ref)

            seated: Dict[str, str] = {}
            unseated: List[str] = []
            for occupant in valid:
                if normalize_id(occupant.id) in seated_ids:
                    continue
                free = room.free_beds
                if not free:
                    unseated.append(occupant.id)
                    continue
                free[0].occupy(occupant.id)
                seated_ids.add(normalize_id(occupant.id))
                seated[occupant.id] = free[0].label

            ordered = [ref for ref in room.occupant_ids or [] if normalize_id(ref) in valid_ids]
            ordered.extend(o.id for o in valid)
            room.occupant_ids = unique_ids(valid_ids[normalize_id(ref)] for ref in ordered)
            room.occupied = max(room.occupied_bed_count, len(room.occupant_ids))
            recompute_status(room)

            with self.transaction():
                self.db.add(room)

            self._log_operation(
                "Room status repaired",
                room.id,
                {
                    "room_number": room.room_number,
                    "cleared_beds": cleared,
                    "seated": seated,
                    "previous_occupied": previous_occupied,
                    "occupied": room.occupied,
                },
            )
            return ServiceResult.success(
                {
                    "room": room,
                    "cleared_beds": cleared,
                    "seated_occupants": seated,
                    "unseated_occupants": unseated,
                    "previous_occupied": previous_occupied,
                    "previous_status": previous_status,
                },
                message="Room status repaired",
            )
        except Exception as e:
            return self._handle_exception(e, "fix room status", room_ref)

    # -------------------------------------------------------------------------
    # Composable steps (raise on failure)
    # -------------------------------------------------------------------------

    def check_can_seat(
        self,
        room: Room,
        occupant: Occupant,
        desired_label: Optional[str] = None,
        moving_from: Optional[str] = None,
    ) -> Bed:
        """Validate an allocation without writing. Returns the bed to use."""
        if occupant.current_room_id and occupant.current_room_id != moving_from:
            raise InvalidStateError(
                "Occupant already has a room allocated",
                {"occupant_id": occupant.id, "current_room_id": occupant.current_room_id},
            )
        if room.status in OVERRIDE_STATUSES:
            status = RoomStatus(room.status).value
            raise InvalidStateError(
                f"Room {room.room_number} is {status} and cannot take occupants",
                {"room_id": room.id, "status": status},
            )
        if room.occupied >= room.capacity:
            raise InvalidStateError("Room is full", {"room_id": room.id, "capacity": room.capacity})

        if desired_label:
            bed = room.bed_by_label(desired_label)
            if bed is None:
                raise ValidationFailureError(
                    f"Bed {desired_label.upper()} does not exist in room {room.room_number}",
                    field="bed_label",
                )
            if bed.is_occupied:
                raise InvalidStateError(
                    f"Bed {bed.label} is not available",
                    {"room_id": room.id, "bed_label": bed.label},
                )
            return bed

        free = room.free_beds
        if not free:
            raise InvalidStateError("No available beds in this room", {"room_id": room.id})
        return free[0]

    def seat(
        self,
        room: Room,
        occupant: Occupant,
        desired_label: Optional[str],
        warnings: List[str],
        moving_from: Optional[str] = None,
    ) -> str:
        """
        Assign a bed and link the occupant to the room.

        The room write is committed on its own; the occupant write follows
        best-effort. Returns the label of the bed taken.
        """
        bed = self.check_can_seat(room, occupant, desired_label, moving_from)

        with self.transaction():
            bed.occupy(occupant.id)
            if not has_occupant_ref(room, occupant.id):
                room.occupant_ids.append(occupant.id)
            room.occupied = max(room.occupied, len(room.occupant_ids))
            recompute_status(room)
            self.db.add(room)

        bed_label = bed.label
        self._log_operation(
            "Bed allocated",
            room.id,
            {"occupant_id": occupant.id, "bed_label": bed_label, "occupied": room.occupied},
        )

        with self.best_effort(
            "link occupant to room",
            warnings,
            {"occupant_id": occupant.id, "room_id": room.id},
        ):
            occupant.current_room_id = room.id
            occupant.allocation_date = utcnow()
            if occupant.status in (OccupantStatus.INACTIVE, OccupantStatus.REGISTERED):
                occupant.status = OccupantStatus.ACTIVE.value
            self.db.add(occupant)

        return bed_label

    def unseat(
        self,
        room: Room,
        occupant_id: str,
        warnings: List[str],
        occupant: Optional[Occupant] = None,
        fallback_label: Optional[str] = None,
        deactivate: bool = False,
    ) -> List[str]:
        """
        Free the occupant's beds in `room` and drop them from its list.

        `occupied` is re-derived from the occupant list; status is demoted
        to available when under capacity (override statuses untouched).
        The occupant's room link is cleared best-effort, and with
        `deactivate` the occupant is marked inactive in the same write.
        Returns the labels of the beds freed.
        """
        beds = beds_held_by(room, occupant_id, fallback_label)

        with self.transaction():
            for bed in beds:
                bed.vacate()
            remove_occupant_ref(room, occupant_id)
            room.occupied = len(room.occupant_ids or [])
            recompute_status(room)
            self.db.add(room)

        released = [bed.label for bed in beds]
        self._log_operation(
            "Bed released",
            room.id,
            {"occupant_id": occupant_id, "released_beds": released, "occupied": room.occupied},
        )
        if not occupancy_consistent(room):
            self._logger.warning(
                "Room occupancy drift after release",
                extra={
                    "room_id": room.id,
                    "occupied": room.occupied,
                    "occupied_beds": room.occupied_bed_count,
                },
            )

        if occupant is not None:
            with self.best_effort(
                "unlink occupant from room",
                warnings,
                {"occupant_id": occupant_id, "room_id": room.id},
            ):
                if occupant.current_room_id is None or same_occupant(occupant.current_room_id, room.id):
                    occupant.current_room_id = None
                if deactivate:
                    occupant.status = OccupantStatus.INACTIVE.value
                self.db.add(occupant)

        return released

    def move(
        self,
        occupant: Occupant,
        old_room: Room,
        new_room: Room,
        new_bed_label: str,
        warnings: List[str],
    ) -> str:
        """
        Release the old room, then seat in the new one.

        Callers validate with `check_can_seat(..., moving_from=old_room.id)`
        before any ledger or billing write.
        """
        self.unseat(old_room, occupant.id, warnings, occupant=occupant)
        return self.seat(new_room, occupant, new_bed_label, warnings, moving_from=old_room.id)

    def rooms_holding(self, occupant_id: str) -> List[Room]:
        """Rooms whose bed array references the occupant."""
        return self.repository.rooms_with_bed_for(occupant_id)

    def describe_placement(self, room: Room, occupant_id: str) -> Tuple[Optional[str], Optional[str]]:
        """(room_number, bed_label) for where the occupant sleeps in `room`."""
        beds = beds_held_by(room, occupant_id)
        return room.room_number, beds[0].label if beds else None
