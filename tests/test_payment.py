import pytest
from datetime import timedelta
from decimal import Decimal

from hostel_ledger.models.base import FeeKind, FeeSource, FeeStatus, LedgerEntryKind
from hostel_ledger.schemas.fee import ChargeCreate
from hostel_ledger.services.base import ErrorCode
from hostel_ledger.utils.date_utils import today


@pytest.fixture
def package(seated_occupant, package_service):
    """Five-month package of 75000 (50000 rent, 15000 mess, 10000 deposit)."""
    occupant, _ = seated_occupant
    return package_service.generate_package(occupant.id, 5).data["billing_entry"]


class TestSplitPayment:
    """Tests for PaymentService.record_split_payment"""

    def test_partial_payment_keeps_balance_consistent(self, package, payment_service):
        result = payment_service.record_split_payment(package.id, Decimal("12000"), Decimal("3000"))

        entry = result.data["billing_entry"]
        assert entry.status == FeeStatus.PARTIAL
        assert entry.paid_amount == Decimal("15000.00")
        assert entry.paid_amount + entry.remaining_balance == entry.total_amount
        assert entry.account_a_amount == Decimal("12000.00")
        assert entry.account_b_amount == Decimal("3000.00")

    def test_receipts_put_deposit_before_rent(self, package, payment_service, manual_ledger_service):
        """Account A receipts the deposit first; account B is mess."""
        result = payment_service.record_split_payment(
            package.id, Decimal("12000"), Decimal("3000"), account_a_voucher="V-100"
        )

        assert result.data["ledger_entries_created"] == 3
        receipts = manual_ledger_service.list_manual_entries(package.occupant_id).data
        lines = sorted((r.account, r.tag, r.amount) for r in receipts)
        assert lines == [
            ("A", "deposit", Decimal("10000.00")),
            ("A", "rent", Decimal("2000.00")),
            ("B", "mess", Decimal("3000.00")),
        ]
        assert all(r.kind == LedgerEntryKind.PAYMENT for r in receipts)
        assert {r.voucher for r in receipts if r.account == "A"} == {"V-100"}

    def test_deposit_is_receipted_only_once(self, package, payment_service, manual_ledger_service):
        payment_service.record_split_payment(package.id, Decimal("10000"), Decimal("0")).unwrap()
        payment_service.record_split_payment(package.id, Decimal("5000"), Decimal("0")).unwrap()

        receipts = manual_ledger_service.list_manual_entries(package.occupant_id).data
        assert sorted(r.tag for r in receipts) == ["deposit", "rent"]

    def test_full_payment_marks_paid(self, package, payment_service):
        result = payment_service.record_split_payment(package.id, Decimal("60000"), Decimal("15000"))

        entry = result.data["billing_entry"]
        assert entry.status == FeeStatus.PAID
        assert entry.remaining_balance == Decimal("0.00")
        assert entry.paid_date == today()

    def test_overpayment_is_rejected(self, package, payment_service):
        result = payment_service.record_split_payment(package.id, Decimal("70000"), Decimal("6000"))

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert package.paid_amount == Decimal("0.00")

    def test_zero_payment_is_rejected(self, package, payment_service):
        result = payment_service.record_split_payment(package.id, Decimal("0"), Decimal("0"))

        assert result.error.code == ErrorCode.VALIDATION_ERROR

    def test_pending_cache_follows_payments(self, seated_occupant, package, payment_service):
        occupant, _ = seated_occupant

        payment_service.record_split_payment(package.id, Decimal("25000"), Decimal("0")).unwrap()

        assert occupant.total_pending_amount == Decimal("50000.00")
        assert occupant.has_pending_fees is True
        assert occupant.pending_fees_from == package.due_date


class TestApplyPayment:
    """Tests for PaymentService.apply_payment"""

    def test_settles_outstanding_amount(self, seated_occupant, package, payment_service, manual_ledger_service):
        occupant, _ = seated_occupant

        result = payment_service.apply_payment(package.id, "UPI", " TXN-42 ")

        entry = result.data["billing_entry"]
        assert entry.status == FeeStatus.PAID
        assert entry.paid_amount == Decimal("75000.00")
        assert entry.account_b_amount == Decimal("15000.00")
        assert entry.account_a_amount == Decimal("60000.00")
        assert entry.payment_method == "upi"
        assert entry.transaction_id == "TXN-42"
        assert result.data["ledger_entries_created"] == 0
        assert manual_ledger_service.list_manual_entries(occupant.id).data == []
        assert occupant.has_pending_fees is False
        assert occupant.pending_fees_from is None

    def test_already_paid(self, package, payment_service):
        payment_service.apply_payment(package.id, "cash", "R-1").unwrap()

        result = payment_service.apply_payment(package.id, "cash", "R-2")

        assert result.error.code == ErrorCode.INVALID_STATE
        assert result.error.message == "Fee is already paid"

    def test_unknown_method(self, package, payment_service):
        result = payment_service.apply_payment(package.id, "barter", "R-1")

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "payment_method"

    def test_transaction_id_required(self, package, payment_service):
        result = payment_service.apply_payment(package.id, "card", "  ")

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.error.message == "Transaction id is required"

    def test_missing_fee(self, payment_service):
        result = payment_service.apply_payment("missing", "cash", "R-1")

        assert result.error.code == ErrorCode.NOT_FOUND


class TestCharges:
    """Tests for create_charge / list_entries / delete_entry"""

    def test_mess_charge_books_under_mess(self, seated_occupant, payment_service):
        occupant, room = seated_occupant

        result = payment_service.create_charge(
            ChargeCreate(
                occupant_id=occupant.id,
                kind=FeeKind.MESS,
                total_amount=Decimal("3000"),
                due_date=today() + timedelta(days=5),
            )
        )

        entry = result.data["billing_entry"]
        assert entry.source == FeeSource.MANUAL
        assert entry.mess_amount == Decimal("3000.00")
        assert entry.rent_amount == Decimal("0.00")
        assert entry.status == FeeStatus.PENDING
        assert entry.room_number == room.room_number
        assert entry.bed_label == "A"

    def test_components_must_add_up(self, seated_occupant):
        occupant, _ = seated_occupant

        with pytest.raises(ValueError):
            ChargeCreate(
                occupant_id=occupant.id,
                total_amount=Decimal("100"),
                rent_amount=Decimal("60"),
                due_date=today(),
            )

    def test_refund_kind_cannot_be_created_by_hand(self, seated_occupant):
        occupant, _ = seated_occupant

        with pytest.raises(ValueError):
            ChargeCreate(
                occupant_id=occupant.id,
                kind=FeeKind.REFUND,
                total_amount=Decimal("100"),
                due_date=today(),
            )

    def test_list_filters_by_kind(self, seated_occupant, package, payment_service):
        occupant, _ = seated_occupant
        payment_service.create_charge(
            ChargeCreate(occupant_id=occupant.id, total_amount=Decimal("500"), due_date=today())
        ).unwrap()

        packages = payment_service.list_entries(occupant_id=occupant.id, kind="package").data
        everything = payment_service.list_entries(occupant_id=occupant.id).data

        assert [entry.id for entry in packages] == [package.id]
        assert len(everything) == 2

    def test_delete_keeps_receipts_unlinked(self, seated_occupant, package, payment_service, manual_ledger_service):
        occupant, _ = seated_occupant
        payment_service.record_split_payment(package.id, Decimal("1000"), Decimal("0")).unwrap()
        fee_id = package.id

        result = payment_service.delete_entry(fee_id)

        assert result.data == {"fee_id": fee_id, "deleted": True, "warnings": []}
        receipts = manual_ledger_service.list_manual_entries(occupant.id).data
        assert len(receipts) == 1
        assert receipts[0].billing_entry_id is None
        assert occupant.has_pending_fees is False
        assert payment_service.get_entry(fee_id).error.code == ErrorCode.NOT_FOUND
