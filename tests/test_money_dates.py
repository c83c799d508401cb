from datetime import date, datetime
from decimal import Decimal

from hostel_ledger.utils.date_utils import (
    add_months,
    as_date,
    block_start,
    blocks_elapsed,
    blocks_touched,
    overlap_days,
)
from hostel_ledger.utils.money import money_sum, split_by_weights, split_evenly, to_money


class TestMoney:
    """Tests for the Decimal money helpers"""

    def test_to_money_rounds_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(2.5) == Decimal("2.50")
        assert to_money(None) == Decimal("0.00")

    def test_split_evenly_sums_exactly(self):
        parts = split_evenly(Decimal("100"), 3)

        assert parts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(parts) == Decimal("100.00")

    def test_split_by_weights_sums_exactly(self):
        parts = split_by_weights(Decimal("100"), [1, 2])

        assert parts == [Decimal("33.33"), Decimal("66.67")]

    def test_split_by_zero_weights_puts_all_on_last(self):
        assert split_by_weights(Decimal("10"), [0, 0]) == [Decimal("0.00"), Decimal("10.00")]

    def test_money_sum(self):
        assert money_sum(["1.10", 2, Decimal("0.005")]) == Decimal("3.11")


class TestDates:
    """Tests for calendar-month and 30-day block arithmetic"""

    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 1, 15), 5) == date(2024, 6, 15)

    def test_blocks_are_thirty_days(self):
        assert block_start(date(2024, 1, 1), 2) == date(2024, 3, 1)
        assert blocks_elapsed(date(2024, 1, 1), date(2024, 3, 1)) == 2
        assert blocks_elapsed(date(2024, 3, 1), date(2024, 1, 1)) == 0

    def test_blocks_touched(self):
        assert blocks_touched(31) == 2
        assert blocks_touched(30) == 1

    def test_overlap_days_half_open(self):
        assert overlap_days(date(2024, 1, 1), date(2024, 1, 31), date(2024, 1, 21), date(2024, 2, 20)) == 10
        assert overlap_days(date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 2), date(2024, 1, 3)) == 0

    def test_as_date(self):
        assert as_date(datetime(2024, 5, 6, 10, 30)) == date(2024, 5, 6)
        assert as_date(None) is None
