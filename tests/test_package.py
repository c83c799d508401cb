from datetime import timedelta
from decimal import Decimal

from hostel_ledger.core.locks import AdvisoryLock
from hostel_ledger.models.base import Component, FeeKind, FeeSource, FeeStatus, PaymentMethod
from hostel_ledger.repositories.fee import BillingEntryRepository
from hostel_ledger.schemas.fee import CollectionItem
from hostel_ledger.services.base import ErrorCode
from hostel_ledger.services.billing import PackageService
from hostel_ledger.utils.date_utils import add_months, today
from hostel_ledger.utils.money import money_sum


class TestGeneratePackage:
    """Tests for PackageService.generate_package"""

    def test_five_month_package_with_deposit(self, seated_occupant, package_service, ledger_service):
        """Rent and mess lines per month plus one deposit line add up to the total."""
        occupant, room = seated_occupant

        result = package_service.generate_package(occupant.id, 5)

        assert result.is_success
        entry = result.data["billing_entry"]
        assert entry.kind == FeeKind.PACKAGE
        assert entry.source == FeeSource.AUTO_PACKAGE
        assert entry.total_amount == Decimal("75000.00")
        assert entry.deposit_amount == Decimal("10000.00")
        assert entry.room_number == room.room_number
        assert entry.bed_label == "A"
        assert result.data["deposit_included"] is True

        sessions = ledger_service.get_ledger(occupant.id).data["sessions"]
        lines = sessions[0]["lines"]
        assert len(lines) == 11
        assert sorted(line["id"] for line in lines if line["component"] == "deposit") == [f"{entry.id}:deposit"]
        assert money_sum(line["amount"] for line in lines) == entry.total_amount

    def test_first_package_is_due_at_enrollment(self, seated_occupant, package_service):
        """An unpaid package due in the past reads back as overdue."""
        occupant, _ = seated_occupant

        entry = package_service.generate_package(occupant.id, 5).data["billing_entry"]

        assert entry.due_date == occupant.enrollment_date
        assert entry.check_in_date == occupant.enrollment_date
        assert entry.status == FeeStatus.OVERDUE
        assert occupant.admission_through_date == add_months(occupant.enrollment_date, 5)
        assert occupant.has_pending_fees is True
        assert occupant.total_pending_amount == Decimal("75000.00")

    def test_deposit_is_charged_once(self, seated_occupant, package_service, payment_service):
        """After the first package is paid, a resumed package carries no deposit."""
        occupant, _ = seated_occupant
        first = package_service.generate_package(occupant.id, 2).data["billing_entry"]
        payment_service.apply_payment(first.id, "upi", "TXN-1").unwrap()

        result = package_service.generate_package(occupant.id, 3)

        entry = result.data["billing_entry"]
        assert result.data["deposit_included"] is False
        assert entry.deposit_amount == Decimal("0.00")
        assert entry.total_amount == Decimal("39000.00")
        assert entry.due_date == today()
        assert entry.check_in_date == today()

    def test_collection_plan_records_receipts(self, seated_occupant, package_service, manual_ledger_service):
        occupant, _ = seated_occupant
        plan = [
            CollectionItem(component=Component.RENT, amount=Decimal("20000"), payment_method=PaymentMethod.UPI),
            CollectionItem(component=Component.MESS, amount=Decimal("5000")),
        ]

        result = package_service.generate_package(occupant.id, 5, collection_plan=plan)

        entry = result.data["billing_entry"]
        assert result.data["ledger_entries_created"] == 2
        assert entry.paid_amount == Decimal("25000.00")
        assert entry.account_a_amount == Decimal("20000.00")
        assert entry.account_b_amount == Decimal("5000.00")
        assert entry.status == FeeStatus.PARTIAL

        receipts = manual_ledger_service.list_manual_entries(occupant.id).data
        assert sorted((r.account, r.tag, r.amount) for r in receipts) == [
            ("A", "rent", Decimal("20000.00")),
            ("B", "mess", Decimal("5000.00")),
        ]
        assert all(r.billing_entry_id == entry.id for r in receipts)

    def test_collection_over_component_is_rejected(self, db, seated_occupant, package_service):
        occupant, _ = seated_occupant
        plan = [CollectionItem(component=Component.RENT, amount=Decimal("60000"))]

        result = package_service.generate_package(occupant.id, 5, collection_plan=plan)

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "collection_plan"
        assert BillingEntryRepository(db).list_for_occupant(occupant.id) == []


class TestPackageGuards:
    """Tests for generation preconditions and the advisory lock"""

    def test_duration_over_limit(self, seated_occupant, package_service):
        occupant, _ = seated_occupant

        result = package_service.generate_package(occupant.id, 6)

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "duration_months"

    def test_occupant_without_room(self, make_occupant, package_service):
        result = package_service.generate_package(make_occupant().id, 5)

        assert result.error.code == ErrorCode.INVALID_STATE
        assert result.error.message == "Occupant has no room allocated"

    def test_unknown_occupant(self, package_service):
        result = package_service.generate_package("missing", 5)

        assert result.error.code == ErrorCode.NOT_FOUND

    def test_held_lock_asks_to_retry(self, seated_occupant, package_service):
        """A request racing an in-flight generation gets RETRY_LATER and writes nothing."""
        occupant, _ = seated_occupant
        package_service.lock.acquire(occupant.id)

        result = package_service.generate_package(occupant.id, 5)

        assert result.error.code == ErrorCode.RETRY_LATER
        assert result.error.details["retry_after_seconds"] > 0
        assert package_service.repository.list_for_occupant(occupant.id) == []

    def test_rapid_duplicate_is_rejected(self, db, seated_occupant):
        """With a release delay, a second call right after the first is turned away."""
        occupant, _ = seated_occupant
        service = PackageService(
            BillingEntryRepository(db),
            db,
            lock=AdvisoryLock(ttl_seconds=10.0, release_delay_seconds=60.0),
        )

        first = service.generate_package(occupant.id, 5)
        second = service.generate_package(occupant.id, 5)

        assert first.is_success
        assert second.error.code == ErrorCode.RETRY_LATER
        assert len(service.repository.list_for_occupant(occupant.id)) == 1


class TestDepositRule:
    """Tests for PackageService.deposit_already_paid"""

    def test_unpaid_deposit_does_not_count(self, seated_occupant, package_service):
        occupant, _ = seated_occupant
        package_service.generate_package(occupant.id, 5).unwrap()

        assert package_service.deposit_already_paid(occupant.id) is False

    def test_manual_deposit_receipts_count(self, seated_occupant, package_service, manual_ledger_service):
        from hostel_ledger.schemas.ledger import ManualEntryCreate

        occupant, _ = seated_occupant
        manual_ledger_service.add_manual_entry(
            occupant.id,
            ManualEntryCreate(
                date=today() - timedelta(days=30),
                kind="Payment",
                account="A",
                amount=Decimal("5000"),
                tag="deposit",
            ),
        ).unwrap()

        assert package_service.deposit_already_paid(occupant.id) is True
