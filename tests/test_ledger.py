import pytest
from decimal import Decimal

from pydantic import ValidationError

from hostel_ledger.models.base import LedgerEntryKind, RoomType, SettlementAccount
from hostel_ledger.schemas.ledger import ManualEntryCreate
from hostel_ledger.services.base import ErrorCode
from hostel_ledger.utils.date_utils import today
from hostel_ledger.utils.money import money_sum


@pytest.fixture
def package(seated_occupant, package_service):
    occupant, _ = seated_occupant
    return package_service.generate_package(occupant.id, 5).data["billing_entry"]


def entry_request(amount="1000", kind="Payment", account="A", **extra):
    return ManualEntryCreate(date=today(), kind=kind, account=account, amount=Decimal(amount), **extra)


# =============================================================================
# Ledger projection over stored documents
# =============================================================================

class TestGetLedger:
    """Tests for LedgerService.get_ledger"""

    def test_partial_payment_view(self, seated_occupant, package, payment_service, ledger_service):
        occupant, _ = seated_occupant
        payment_service.record_split_payment(package.id, Decimal("12000"), Decimal("3000")).unwrap()

        data = ledger_service.get_ledger(occupant.id).data

        assert data["occupant_id"] == occupant.id
        session = data["sessions"][0]
        assert session["is_active"] is True
        assert session["payment_status"] == "partial"
        assert session["paid_by_component"]["deposit"] == Decimal("10000.00")
        assert session["paid_by_component"]["rent"] == Decimal("2000.00")
        assert session["paid_by_component"]["mess"] == Decimal("3000.00")
        assert session["total_due"] == Decimal("60000.00")

        summary = data["summary"]
        assert summary["total_fees"] == Decimal("75000.00")
        assert summary["total_paid"] == Decimal("15000.00")
        assert summary["total_pending"] == Decimal("60000.00")
        assert summary["current_balance"] == Decimal("60000.00")
        assert summary["deposit_paid"] == Decimal("10000.00")
        assert summary["stay_duration_days"] == 60
        assert summary["stay_duration_months"] == 2
        assert summary["total_transactions"] == len(data["ledger"]) == 4

    def test_gateway_payment_settles_session(self, seated_occupant, package, payment_service, ledger_service):
        occupant, _ = seated_occupant
        payment_service.apply_payment(package.id, "online", "GW-1").unwrap()

        data = ledger_service.get_ledger(occupant.id).data

        assert data["sessions"][0]["payment_status"] == "paid"
        assert data["summary"]["current_balance"] == Decimal("0.00")

    def test_checked_out_occupant_has_completed_sessions(
        self, seated_occupant, package, checkout_service, ledger_service
    ):
        occupant, _ = seated_occupant
        checkout_service.check_out(package.id).unwrap()

        data = ledger_service.get_ledger(occupant.id).data

        assert all(s["status"] == "completed" for s in data["sessions"])
        assert not any(s["is_active"] for s in data["sessions"])
        assert data["summary"]["total_refunded"] == Decimal("49000.00")
        assert data["sessions"][0]["refunds"]["total"] == Decimal("49000.00")

    def test_room_shift_splits_session(
        self, seated_occupant, package, make_room, transfer_service, ledger_service
    ):
        occupant, _ = seated_occupant
        target = make_room(room_number="202", room_type=RoomType.SINGLE, base_rent="12000")
        transfer_service.transfer_room(occupant.id, target.id).unwrap()

        sessions = ledger_service.get_ledger(occupant.id).data["sessions"]

        assert len(sessions) == 2
        assert sessions[0]["room_snapshot"]["room_number"] == "202"
        assert sessions[1]["room_snapshot"]["room_number"] == "201"
        assert sessions[0]["is_active"] is True
        # 75000 package plus 3 remaining months at +2000 rent
        assert money_sum(s["total"] for s in sessions) == Decimal("81000.00")
        assert sessions[0]["payable_adjustments"][0]["amount"] == Decimal("6000.00")

    def test_unknown_occupant(self, ledger_service):
        result = ledger_service.get_ledger("missing")

        assert result.error.code == ErrorCode.NOT_FOUND


# =============================================================================
# Manual ledger entries
# =============================================================================

class TestManualLedger:
    """Tests for ManualLedgerService"""

    def test_add_and_list(self, seated_occupant, package, manual_ledger_service):
        occupant, _ = seated_occupant

        result = manual_ledger_service.add_manual_entry(
            occupant.id, entry_request("2500", tag="rent", billing_entry_id=package.id, voucher="V-9")
        )

        assert result.is_success
        entries = manual_ledger_service.list_manual_entries(occupant.id).data
        assert [(e.kind, e.account, e.amount, e.voucher) for e in entries] == [
            ("Payment", "A", Decimal("2500.00"), "V-9")
        ]

    def test_foreign_billing_entry_is_rejected(self, make_occupant, package, manual_ledger_service):
        stranger = make_occupant()

        result = manual_ledger_service.add_manual_entry(
            stranger.id, entry_request(billing_entry_id=package.id)
        )

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "billing_entry_id"

    def test_missing_billing_entry(self, seated_occupant, manual_ledger_service):
        occupant, _ = seated_occupant

        result = manual_ledger_service.add_manual_entry(occupant.id, entry_request(billing_entry_id="nope"))

        assert result.error.code == ErrorCode.NOT_FOUND

    def test_room_shift_marker_carries_no_amount(self):
        with pytest.raises(ValidationError):
            entry_request("100", kind="Other", tag="room_shift")

    def test_shift_between_accounts(self, seated_occupant, manual_ledger_service):
        occupant, _ = seated_occupant
        entry = manual_ledger_service.add_manual_entry(occupant.id, entry_request()).unwrap()

        moved = manual_ledger_service.shift_manual_entry_account(entry.id, SettlementAccount.B)
        again = manual_ledger_service.shift_manual_entry_account(entry.id, SettlementAccount.B)

        assert moved.data.account == "B"
        assert again.error.code == ErrorCode.INVALID_STATE
        assert again.error.message == "Entry is already on account B"

    def test_delete_one_checks_owner(self, seated_occupant, make_occupant, manual_ledger_service):
        occupant, _ = seated_occupant
        entry = manual_ledger_service.add_manual_entry(occupant.id, entry_request()).unwrap()

        wrong_owner = manual_ledger_service.delete_manual_entry(make_occupant().id, entry.id)
        deleted = manual_ledger_service.delete_manual_entry(occupant.id, entry.id)

        assert wrong_owner.error.code == ErrorCode.NOT_FOUND
        assert deleted.data == {"entry_id": entry.id, "deleted": True}
        assert manual_ledger_service.list_manual_entries(occupant.id).data == []

    def test_delete_all(self, seated_occupant, manual_ledger_service):
        occupant, _ = seated_occupant
        manual_ledger_service.add_manual_entry(occupant.id, entry_request()).unwrap()
        manual_ledger_service.add_manual_entry(
            occupant.id, entry_request("300", kind=LedgerEntryKind.OTHER, account="B")
        ).unwrap()

        result = manual_ledger_service.delete_manual_entries(occupant.id)

        assert result.data == {"occupant_id": occupant.id, "deleted": 2}
