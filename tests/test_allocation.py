import pytest

from hostel_ledger.models.base import OccupantStatus, RoomStatus, RoomType
from hostel_ledger.services.allocation import occupancy_consistent
from hostel_ledger.services.base import ErrorCode


# =============================================================================
# assign_bed
# =============================================================================

class TestAssignBed:
    """Tests for AllocationService.assign_bed"""

    def test_double_room_fills_a_then_b(self, make_room, make_occupant, allocation_service):
        """Beds are taken in label order and the room flips to occupied."""
        room = make_room(room_type=RoomType.DOUBLE)
        first = make_occupant()
        second = make_occupant()

        result_a = allocation_service.assign_bed(room.id, first.id)
        result_b = allocation_service.assign_bed(room.id, second.id)

        assert result_a.is_success
        assert result_a.data["bed_label"] == "A"
        assert result_b.data["bed_label"] == "B"
        assert room.occupied == 2
        assert room.status == RoomStatus.OCCUPIED
        assert occupancy_consistent(room)

    def test_full_room_rejects_third_occupant(self, make_room, make_occupant, allocation_service):
        """A third allocation into a capacity-2 room fails with 'Room is full'."""
        room = make_room(room_type=RoomType.DOUBLE)
        for _ in range(2):
            allocation_service.assign_bed(room.id, make_occupant().id).unwrap()

        result = allocation_service.assign_bed(room.id, make_occupant().id)

        assert not result.is_success
        assert result.error.code == ErrorCode.INVALID_STATE
        assert result.error.message == "Room is full"
        assert room.occupied == 2

    def test_requested_label_is_case_insensitive(self, make_room, make_occupant, allocation_service):
        """A lower-case label picks the matching bed."""
        room = make_room(room_type=RoomType.TRIPLE)
        occupant = make_occupant()

        result = allocation_service.assign_bed(room.id, occupant.id, "c")

        assert result.data["bed_label"] == "C"
        assert room.bed_by_label("C").occupant_id == occupant.id
        assert room.bed_by_label("A").is_occupied is False

    def test_taken_bed_is_rejected(self, make_room, make_occupant, allocation_service):
        """Asking for an occupied bed fails without touching the room."""
        room = make_room(room_type=RoomType.DOUBLE)
        allocation_service.assign_bed(room.id, make_occupant().id, "A").unwrap()

        result = allocation_service.assign_bed(room.id, make_occupant().id, "A")

        assert result.error.code == ErrorCode.INVALID_STATE
        assert "Bed A is not available" in result.error.message
        assert room.occupied == 1

    def test_unknown_bed_label_is_a_validation_error(self, make_room, make_occupant, allocation_service):
        room = make_room(room_type=RoomType.SINGLE)

        result = allocation_service.assign_bed(room.id, make_occupant().id, "D")

        assert result.error.code == ErrorCode.VALIDATION_ERROR

    def test_already_allocated_occupant_is_rejected(self, make_room, make_occupant, allocation_service):
        """An occupant holds at most one room at a time."""
        first_room = make_room(room_number="101")
        second_room = make_room(room_number="102")
        occupant = make_occupant()
        allocation_service.assign_bed(first_room.id, occupant.id).unwrap()

        result = allocation_service.assign_bed(second_room.id, occupant.id)

        assert result.error.code == ErrorCode.INVALID_STATE
        assert second_room.occupied == 0

    def test_maintenance_room_is_rejected(self, make_room, make_occupant, allocation_service):
        room = make_room(status=RoomStatus.MAINTENANCE)

        result = allocation_service.assign_bed(room.id, make_occupant().id)

        assert result.error.code == ErrorCode.INVALID_STATE
        assert "maintenance" in result.error.message

    def test_links_occupant_and_activates_registered(self, make_room, make_occupant, allocation_service):
        """Seating sets the occupant's room and makes a registered occupant active."""
        room = make_room()
        occupant = make_occupant(status=OccupantStatus.REGISTERED)

        allocation_service.assign_bed(room.id, occupant.id).unwrap()

        assert occupant.current_room_id == room.id
        assert occupant.allocation_date is not None
        assert occupant.status == OccupantStatus.ACTIVE

    def test_missing_room_is_not_found(self, make_occupant, allocation_service):
        result = allocation_service.assign_bed("no-such-room", make_occupant().id)

        assert result.error.code == ErrorCode.NOT_FOUND


# =============================================================================
# release_bed
# =============================================================================

class TestReleaseBed:
    """Tests for AllocationService.release_bed"""

    def test_release_frees_bed_and_unlinks_occupant(self, make_room, make_occupant, allocation_service):
        room = make_room(room_type=RoomType.DOUBLE)
        first = make_occupant()
        second = make_occupant()
        allocation_service.assign_bed(room.id, first.id).unwrap()
        allocation_service.assign_bed(room.id, second.id).unwrap()

        result = allocation_service.release_bed(room.id, first.id)

        assert result.data["released_beds"] == ["A"]
        assert room.occupied == 1
        assert room.status == RoomStatus.AVAILABLE
        assert room.occupant_ids == [second.id]
        assert first.current_room_id is None
        assert occupancy_consistent(room)

    def test_second_release_is_a_no_op(self, make_room, make_occupant, allocation_service):
        """Releasing an occupant that holds nothing changes nothing."""
        room = make_room()
        occupant = make_occupant()
        allocation_service.assign_bed(room.id, occupant.id).unwrap()
        allocation_service.release_bed(room.id, occupant.id).unwrap()

        result = allocation_service.release_bed(room.id, occupant.id)

        assert result.is_success
        assert result.data["released_beds"] == []
        assert room.occupied == 0
        assert room.occupant_ids == []
        assert all(not bed.is_occupied for bed in room.beds)

    def test_release_keeps_maintenance_status(self, make_room, make_occupant, allocation_service, room_service):
        from hostel_ledger.schemas.room import RoomUpdate

        room = make_room()
        occupant = make_occupant()
        allocation_service.assign_bed(room.id, occupant.id).unwrap()
        room_service.update_room(room.id, RoomUpdate(status=RoomStatus.MAINTENANCE)).unwrap()

        allocation_service.release_bed(room.id, occupant.id).unwrap()

        assert room.status == RoomStatus.MAINTENANCE
        assert room.occupied == 0


# =============================================================================
# fix_room_status
# =============================================================================

class TestFixRoomStatus:
    """Tests for AllocationService.fix_room_status"""

    def test_clears_stale_bed_reference(self, db, make_room, make_occupant, allocation_service):
        """A bed pointing at an occupant living elsewhere is cleared."""
        room = make_room(room_type=RoomType.DOUBLE)
        occupant = make_occupant()
        allocation_service.assign_bed(room.id, occupant.id).unwrap()

        room.bed_by_label("B").occupy("ghost-occupant")
        room.occupant_ids.append("ghost-occupant")
        room.occupied = 2
        db.commit()

        result = allocation_service.fix_room_status(room.room_number)

        assert result.is_success
        assert result.data["cleared_beds"] == ["B"]
        assert result.data["previous_occupied"] == 2
        assert room.occupied == 1
        assert room.occupant_ids == [occupant.id]
        assert room.status == RoomStatus.AVAILABLE
        assert occupancy_consistent(room)

    def test_seats_linked_occupant_without_bed(self, db, make_room, make_occupant, allocation_service):
        """An occupant whose current room is this room gets a free bed."""
        room = make_room(room_type=RoomType.DOUBLE)
        occupant = make_occupant()
        occupant.current_room_id = room.id
        db.commit()

        result = allocation_service.fix_room_status(room.id)

        assert result.data["seated_occupants"] == {occupant.id: "A"}
        assert room.occupied == 1
        assert room.bed_by_label("A").occupant_id == occupant.id

    def test_unknown_room_is_not_found(self, allocation_service):
        result = allocation_service.fix_room_status("999")

        assert result.error.code == ErrorCode.NOT_FOUND
