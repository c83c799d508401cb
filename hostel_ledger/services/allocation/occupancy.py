"""
Occupancy invariants shared by every code path that touches a room.

- `beds_held_by` is the one place that decides which beds belong to an
  occupant (normalized id equality, optional label fallback)
- `recompute_status` is the one place that derives room status
- `occupancy_consistent` checks occupied == occupied beds == len(occupant_ids)
"""

from typing import Iterable, List, Optional

from hostel_ledger.models.base import RoomStatus
from hostel_ledger.models.room import Bed, Room

# Statuses set by staff that allocation logic never clears on its own
OVERRIDE_STATUSES = (RoomStatus.MAINTENANCE, RoomStatus.UNAVAILABLE)


def normalize_id(value) -> str:
    """Canonical form of an occupant reference for equality checks."""
    if value is None:
        return ""
    return str(value).strip().lower()


def same_occupant(left, right) -> bool:
    left_id = normalize_id(left)
    return bool(left_id) and left_id == normalize_id(right)


def beds_held_by(room: Room, occupant_id: str, fallback_label: Optional[str] = None) -> List[Bed]:
    """
    Beds in `room` assigned to the occupant.

    Primary match is the bed's occupant reference. When `fallback_label` is
    given, the bed carrying that label is also included if it is occupied
    without a reference or already references this occupant (a bed recorded
    on the fee but never linked). Results are deduplicated.
    """
    held: List[Bed] = []
    seen = set()

    for bed in room.beds:
        if same_occupant(bed.occupant_id, occupant_id):
            held.append(bed)
            seen.add(bed.label)

    if fallback_label:
        bed = room.bed_by_label(fallback_label)
        if bed is not None and bed.label not in seen:
            if bed.is_occupied and (bed.occupant_id is None or same_occupant(bed.occupant_id, occupant_id)):
                held.append(bed)

    return held


def remove_occupant_ref(room: Room, occupant_id: str) -> int:
    """Drop every reference to the occupant from the room list. Returns count removed."""
    kept = [ref for ref in room.occupant_ids or [] if not same_occupant(ref, occupant_id)]
    removed = len(room.occupant_ids or []) - len(kept)
    if removed:
        room.occupant_ids = kept
    return removed


def has_occupant_ref(room: Room, occupant_id: str) -> bool:
    return any(same_occupant(ref, occupant_id) for ref in room.occupant_ids or [])


def recompute_status(room: Room) -> RoomStatus:
    """
    Derive status from occupied vs capacity.

    available <-> occupied only; maintenance/unavailable are left alone.
    """
    if room.status in OVERRIDE_STATUSES:
        return RoomStatus(room.status)
    derived = RoomStatus.OCCUPIED if room.occupied >= room.capacity else RoomStatus.AVAILABLE
    room.status = derived.value
    return RoomStatus(room.status)


def occupancy_consistent(room: Room) -> bool:
    refs = room.occupant_ids or []
    return room.occupied == room.occupied_bed_count == len(refs)


def unique_ids(values: Iterable[str]) -> List[str]:
    """Order-preserving dedupe by normalized id."""
    result: List[str] = []
    seen = set()
    for value in values:
        key = normalize_id(value)
        if key and key not in seen:
            seen.add(key)
            result.append(str(value))
    return result
