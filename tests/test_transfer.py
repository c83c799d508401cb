import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from hostel_ledger.models.base import FeeKind, FeeStatus, LedgerEntryKind, LedgerTag, RoomStatus, RoomType
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.services.allocation import occupancy_consistent
from hostel_ledger.services.base import ErrorCode


@pytest.fixture
def shifted_setup(make_room, make_occupant, allocation_service, package_service, days_ago):
    """Occupant 60 days into a 5-month package in a 5000 room, and an 8000 room to move to."""
    old_room = make_room(room_number="301", room_type=RoomType.DOUBLE, base_rent="5000")
    new_room = make_room(room_number="302", room_type=RoomType.DOUBLE, base_rent="8000", is_ac=True)
    occupant = make_occupant(enrollment_date=days_ago(60))
    allocation_service.assign_bed(old_room.id, occupant.id).unwrap()
    package = package_service.generate_package(occupant.id, 5).data["billing_entry"]
    return occupant, old_room, new_room, package


class TestTransferRoom:
    """Tests for TransferService.transfer_room"""

    def test_upgrade_books_surcharge_for_remaining_months(
        self, shifted_setup, transfer_service, manual_ledger_service
    ):
        occupant, old_room, new_room, package = shifted_setup

        result = transfer_service.transfer_room(occupant.id, new_room.id, "B")

        assert result.is_success
        assert result.data["adjustment"]["remaining_months"] == 3
        assert result.data["adjustment"]["total"] == Decimal("9000.00")
        assert result.data["ledger_entries_created"] == 2

        entries = manual_ledger_service.list_manual_entries(occupant.id).data
        marker = next(e for e in entries if e.tag == LedgerTag.ROOM_SHIFT)
        assert marker.kind == LedgerEntryKind.OTHER
        assert marker.amount == Decimal("0.00")
        assert marker.details == {
            "from_room": "301",
            "from_bed": "A",
            "from_type": "double",
            "to_room": "302",
            "to_bed": "B",
            "to_type": "double",
        }
        surcharge = next(e for e in entries if e.tag == LedgerTag.ADJUSTMENT)
        assert surcharge.kind == LedgerEntryKind.OTHER
        assert surcharge.account == "A"
        assert surcharge.amount == Decimal("9000.00")
        assert surcharge.billing_entry_id == package.id

    def test_package_without_start_date_counts_full_duration(self, db, shifted_setup, transfer_service):
        """No check-in or paid date: every month of the package is still ahead."""
        occupant, _, new_room, package = shifted_setup
        package.check_in_date = None
        package.paid_date = None
        package.created_at = datetime.now(timezone.utc) - timedelta(days=90)
        db.commit()

        assert transfer_service.remaining_months(occupant.id) == 5

        result = transfer_service.transfer_room(occupant.id, new_room.id)

        assert result.data["adjustment"]["remaining_months"] == 5
        assert result.data["adjustment"]["total"] == Decimal("15000.00")

    def test_upgrade_raises_adjustment_fee(self, db, shifted_setup, transfer_service):
        occupant, _, new_room, package = shifted_setup

        result = transfer_service.transfer_room(occupant.id, new_room.id)

        fee = BillingEntryRepository(db).find_by_id(result.data["adjustment_fee_id"])
        assert fee.kind == FeeKind.ADJUSTMENT
        assert fee.status == FeeStatus.PENDING
        assert fee.total_amount == Decimal("9000.00")
        assert fee.related_entry_id == package.id
        assert fee.room_number == "302"

    def test_occupancy_moves_between_rooms(self, shifted_setup, transfer_service):
        occupant, old_room, new_room, _ = shifted_setup

        transfer_service.transfer_room(occupant.id, new_room.id).unwrap()

        assert old_room.occupied == 0
        assert old_room.status == RoomStatus.AVAILABLE
        assert new_room.occupied == 1
        assert new_room.occupant_ids == [occupant.id]
        assert occupant.current_room_id == new_room.id
        assert occupancy_consistent(old_room)
        assert occupancy_consistent(new_room)

    def test_downgrade_is_settled_as_payment(
        self, make_room, make_occupant, allocation_service, package_service, transfer_service,
        manual_ledger_service, days_ago,
    ):
        expensive = make_room(room_number="401", room_type=RoomType.SINGLE, base_rent="8000")
        cheap = make_room(room_number="402", room_type=RoomType.SINGLE, base_rent="5000")
        occupant = make_occupant(enrollment_date=days_ago(60))
        allocation_service.assign_bed(expensive.id, occupant.id).unwrap()
        package_service.generate_package(occupant.id, 5).unwrap()

        result = transfer_service.transfer_room(occupant.id, cheap.id)

        assert result.data["adjustment_fee_id"] is None
        credit = next(
            e for e in manual_ledger_service.list_manual_entries(occupant.id).data
            if e.tag == LedgerTag.ADJUSTMENT
        )
        assert credit.kind == LedgerEntryKind.PAYMENT
        assert credit.amount == Decimal("9000.00")
        assert credit.payment_method == "adjustment"

    def test_same_room_is_rejected(self, shifted_setup, transfer_service, manual_ledger_service):
        occupant, old_room, _, _ = shifted_setup

        result = transfer_service.transfer_room(occupant.id, old_room.id)

        assert result.error.code == ErrorCode.INVALID_STATE
        assert result.error.message == "Occupant is already in this room; choose a different room"
        assert manual_ledger_service.list_manual_entries(occupant.id).data == []

    def test_full_target_is_rejected(self, shifted_setup, make_occupant, allocation_service, transfer_service):
        occupant, old_room, new_room, _ = shifted_setup
        allocation_service.assign_bed(new_room.id, make_occupant().id).unwrap()
        allocation_service.assign_bed(new_room.id, make_occupant().id).unwrap()

        result = transfer_service.transfer_room(occupant.id, new_room.id)

        assert result.error.code == ErrorCode.INVALID_STATE
        assert result.error.message == "Room is full"
        assert occupant.current_room_id == old_room.id

    def test_unseated_occupant_is_rejected(self, make_room, make_occupant, transfer_service):
        room = make_room()

        result = transfer_service.transfer_room(make_occupant().id, room.id)

        assert result.error.code == ErrorCode.INVALID_STATE
