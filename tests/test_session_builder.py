from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from hostel_ledger.services.ledger.session_builder import build_ledger, build_sessions
from hostel_ledger.utils.money import money_sum

JAN_1 = date(2024, 1, 1)
MAR_1 = date(2024, 3, 1)


def billing(id, **overrides):
    """Two-month package starting Jan 1: rent 20000, mess 6000, deposit 10000."""
    values = dict(
        id=id,
        kind="package",
        due_date=JAN_1,
        created_at=None,
        check_in_date=JAN_1,
        package_duration_months=2,
        rent_amount=Decimal("20000"),
        mess_amount=Decimal("6000"),
        deposit_amount=Decimal("10000"),
        total_amount=Decimal("36000"),
        paid_amount=Decimal("0"),
        status="pending",
        room_number="101",
        bed_label="A",
        room_type="double",
        paid_date=None,
        description="2-month package, room 101 (double)",
        related_entry_id=None,
        account_a_voucher=None,
        account_b_voucher=None,
        transaction_id=None,
        payment_method=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def manual(id, entry_date, amount, kind="Payment", account="A", tag=None, billing_entry_id=None, details=None):
    return SimpleNamespace(
        id=id,
        entry_date=entry_date,
        kind=kind,
        account=account,
        amount=Decimal(amount),
        tag=tag,
        voucher=None,
        payment_method="cash" if kind == "Payment" else None,
        description=None,
        billing_entry_id=billing_entry_id,
        details=details or {},
    )


def occupant(status="active", current_room_id="room-1"):
    return SimpleNamespace(
        status=status,
        current_room_id=current_room_id,
        enrollment_date=JAN_1,
        admission_through_date=None,
    )


class TestPackageSessions:
    """Tests for line layout and matching"""

    def test_lines_per_month_and_one_deposit(self):
        sessions = build_sessions([billing("p1")], [], occupant(), date(2024, 1, 15))

        session = sessions[0]
        assert [line.id for line in session.lines] == [
            "p1:rent:1", "p1:rent:2", "p1:mess:1", "p1:mess:2", "p1:deposit",
        ]
        assert session.lines[1].start == date(2024, 1, 31)
        assert session.end == MAR_1
        assert session.total == Decimal("36000.00")
        assert session.is_active

    def test_deposit_receipt_goes_to_deposit_session(self):
        """A deposit-tagged payment lands on the session carrying the deposit, whatever its date."""
        payments = [manual("m1", date(2024, 6, 1), "10000", tag="deposit")]

        session = build_sessions([billing("p1")], payments, occupant(), date(2024, 6, 2))[0]

        assert session.paid_by_component["deposit"] == Decimal("10000.00")
        assert session.due_by_component["deposit"] == Decimal("0.00")
        assert session.payment_status == "partial"

    def test_untagged_mess_account_payment_counts_as_mess(self):
        payments = [manual("m1", date(2024, 1, 10), "3000", account="B")]

        session = build_sessions([billing("p1")], payments, occupant(), date(2024, 1, 15))[0]

        assert session.paid_by_component["mess"] == Decimal("3000.00")

    def test_gateway_payment_fills_deposit_then_rent_then_mess(self):
        entry = billing("p1", paid_amount=Decimal("31000"), status="partial", paid_date=JAN_1)

        session = build_sessions([entry], [], occupant(), date(2024, 1, 15))[0]

        assert session.paid_by_component == {
            "rent": Decimal("20000.00"),
            "mess": Decimal("1000.00"),
            "deposit": Decimal("10000.00"),
        }
        assert session.total_due == Decimal("5000.00")

    def test_linked_receipts_are_not_counted_twice(self):
        entry = billing("p1", paid_amount=Decimal("5000"), status="partial")
        payments = [manual("m1", JAN_1, "5000", tag="rent", billing_entry_id="p1")]

        session = build_sessions([entry], payments, occupant(), date(2024, 1, 15))[0]

        assert session.total_paid == Decimal("5000.00")
        assert len(session.payments) == 1

    def test_overdue_when_unpaid_past_due(self):
        session = build_sessions([billing("p1")], [], occupant(), date(2024, 1, 2))[0]

        assert session.payment_status == "overdue"

    def test_fallback_session_without_entries(self):
        sessions = build_sessions([], [manual("m1", JAN_1, "500")], occupant(), date(2024, 1, 5))

        assert len(sessions) == 1
        assert sessions[0].id == "fallback"
        assert sessions[0].kind == "history"
        assert sessions[0].total_paid == Decimal("500.00")


class TestSessionHistory:
    """Tests for active/history flags and the deposit carry-forward"""

    def _two_packages(self):
        first = billing(
            "p1", paid_amount=Decimal("36000"), status="paid", paid_date=JAN_1,
        )
        second = billing(
            "p2",
            due_date=MAR_1,
            check_in_date=MAR_1,
            deposit_amount=Decimal("0"),
            total_amount=Decimal("26000"),
        )
        return [first, second]

    def test_inactive_occupant_has_only_completed_sessions(self):
        sessions = build_sessions(
            self._two_packages(), [], occupant(status="inactive", current_room_id=None), date(2024, 3, 15)
        )

        assert [s.id for s in sessions] == ["p2", "p1"]
        assert all(s.status == "completed" for s in sessions)
        assert not any(s.is_active for s in sessions)

    def test_deposit_carries_forward_to_active_session(self):
        sessions = build_sessions(self._two_packages(), [], occupant(), date(2024, 3, 15))

        active, previous = sessions
        assert active.id == "p2"
        assert active.is_active
        assert active.component_totals["deposit"] == Decimal("10000.00")
        assert active.paid_by_component["deposit"] == Decimal("10000.00")
        assert active.payment_status == "partial"
        assert previous.component_totals["deposit"] == Decimal("0.00")
        assert previous.payment_status == "paid"


class TestRoomShiftSplit:
    """Tests for splitting a package at a room-shift marker"""

    def test_split_by_day_overlap(self):
        marker = manual(
            "shift",
            date(2024, 1, 21),
            "0",
            kind="Other",
            tag="room_shift",
            details={
                "from_room": "101", "from_bed": "A", "from_type": "double",
                "to_room": "102", "to_bed": "B", "to_type": "single",
            },
        )

        sessions = build_sessions([billing("p1")], [marker], occupant(), date(2024, 2, 1))

        later, earlier = sessions
        assert (earlier.id, later.id) == ("p1:0", "p1:1")
        assert earlier.room_snapshot["room_number"] == "101"
        assert later.room_snapshot == {"room_number": "102", "bed_label": "B", "room_type": "single"}
        assert earlier.component_totals["rent"] == Decimal("6666.67")
        assert earlier.component_totals["mess"] == Decimal("2000.00")
        assert earlier.component_totals["deposit"] == Decimal("10000.00")
        assert later.component_totals["rent"] == Decimal("13333.33")
        assert money_sum(s.total for s in sessions) == Decimal("36000.00")
        assert later.is_active and not earlier.is_active

    def test_deposit_and_its_payment_stay_on_first_period(self):
        """The period after a shift is active but never takes the deposit."""
        marker = manual("shift", date(2024, 1, 21), "0", kind="Other", tag="room_shift")
        deposit_paid = manual("m1", date(2024, 1, 25), "10000", tag="deposit", billing_entry_id="p1")

        sessions = build_sessions([billing("p1")], [marker, deposit_paid], occupant(), date(2024, 2, 1))

        later, earlier = sessions
        assert later.is_active
        assert later.component_totals["deposit"] == Decimal("0.00")
        assert later.paid_by_component["deposit"] == Decimal("0.00")
        assert earlier.component_totals["deposit"] == Decimal("10000.00")
        assert earlier.paid_by_component["deposit"] == Decimal("10000.00")
        assert [line.id for line in earlier.lines if line.component == "deposit"] == ["p1:deposit"]


class TestFlatLedger:
    """Tests for build_ledger"""

    def test_running_balance_with_debits_first(self):
        entries = [billing("p1")]
        payments = [
            manual("m1", JAN_1, "5000", tag="rent", billing_entry_id="p1"),
            manual("m2", date(2024, 1, 10), "0", kind="Other", tag="room_shift"),
        ]

        rows = build_ledger(entries, payments)

        assert [(r["debit"], r["credit"], r["balance"]) for r in rows] == [
            (Decimal("36000.00"), Decimal("0.00"), Decimal("36000.00")),
            (Decimal("0.00"), Decimal("5000.00"), Decimal("31000.00")),
            (Decimal("0.00"), Decimal("0.00"), Decimal("31000.00")),
        ]

    def test_refund_entry_is_a_credit(self):
        entries = [
            billing("p1", status="checked_out"),
            billing(
                "r1", kind="refund", total_amount=Decimal("12000"), paid_amount=Decimal("12000"),
                status="refunded", due_date=date(2024, 2, 1), paid_date=date(2024, 2, 1),
                related_entry_id="p1",
            ),
        ]

        rows = build_ledger(entries, [])

        assert rows[-1]["source"] == "refund"
        assert rows[-1]["balance"] == Decimal("24000.00")
