"""Unit tests for the running balance projection."""

import unittest
from datetime import date, timedelta
from decimal import Decimal

from runway.aggregate.aggregate import aggregate_daily
from runway.balance.balance import balance_summary, project_balances, reserve_floor
from runway.dates.dates import day_range
from runway.errors import MissingStartingBalance
from runway.events.models import CashFlowEvent, EventType


class TestProjectBalances(unittest.TestCase):
    """Test cases for project_balances."""

    def setUp(self):
        self.today = date(2024, 1, 1)
        self.days = day_range(self.today, date(2024, 1, 31))

    def _project(self, starting, events, exclude_today=False):
        result = aggregate_daily(events, self.days[0], self.days[-1])
        return project_balances(Decimal(starting), self.days, result.changes, exclude_today)

    def test_running_balance_follows_daily_changes(self):
        events = [
            CashFlowEvent("in", EventType.INFLOW, Decimal("5000"), date(2024, 1, 4)),
            CashFlowEvent("out", EventType.OUTFLOW, Decimal("2000"), date(2024, 1, 4)),
            CashFlowEvent("po", EventType.OUTFLOW, Decimal("1000"), date(2024, 1, 11)),
        ]
        series = dict(self._project("10000", events))
        self.assertEqual(series[date(2024, 1, 3)], Decimal("10000"))
        self.assertEqual(series[date(2024, 1, 4)], Decimal("13000"))
        self.assertEqual(series[date(2024, 1, 10)], Decimal("13000"))
        self.assertEqual(series[date(2024, 1, 11)], Decimal("12000"))

    def test_each_day_adds_its_change_to_the_previous_day(self):
        changes = [Decimal("1.10"), Decimal("-2.25"), Decimal("0"), Decimal("7.5")]
        days = self.days[:4]
        series = project_balances(Decimal("100"), days, changes)
        self.assertEqual(series[0][1], Decimal("101.10"))
        for k in range(1, len(series)):
            self.assertEqual(series[k][1], series[k - 1][1] + changes[k])

    def test_exclude_today_skips_day_zero_change(self):
        events = [CashFlowEvent("today", EventType.INFLOW, Decimal("250"), self.today)]
        self.assertEqual(self._project("1000", events)[0][1], Decimal("1250"))
        self.assertEqual(self._project("1000", events, exclude_today=True)[0][1], Decimal("1000"))

    def test_no_events_is_flat(self):
        series = self._project("500", [])
        self.assertEqual(len(series), 31)
        self.assertTrue(all(balance == Decimal("500") for _, balance in series))

    def test_missing_starting_balance_raises(self):
        with self.assertRaises(MissingStartingBalance):
            project_balances(None, self.days[:1], [Decimal("0")])

    def test_length_mismatch_raises(self):
        with self.assertRaises(ValueError):
            project_balances(Decimal("1"), self.days[:2], [Decimal("0")])

    def test_no_rounding_drift(self):
        days = [self.today + timedelta(days=i) for i in range(10)]
        series = project_balances(Decimal("0"), days, [Decimal("0.1")] * 10)
        self.assertEqual(series[-1][1], Decimal("1.0"))


class TestBalanceSummary(unittest.TestCase):
    """Test cases for balance_summary and reserve_floor."""

    def test_lowest_and_first_negative(self):
        series = [
            (date(2024, 1, 1), Decimal("100")),
            (date(2024, 1, 2), Decimal("-20")),
            (date(2024, 1, 3), Decimal("-50")),
            (date(2024, 1, 4), Decimal("-50")),
        ]
        summary = balance_summary(series)
        self.assertEqual(summary.lowest_balance, Decimal("-50"))
        self.assertEqual(summary.lowest_balance_date, date(2024, 1, 3))
        self.assertEqual(summary.first_negative_date, date(2024, 1, 2))

    def test_empty_series(self):
        self.assertIsNone(balance_summary([]))

    def test_reserve_floor_is_constant(self):
        days = [date(2024, 1, 1), date(2024, 1, 2)]
        self.assertEqual(
            reserve_floor(days, Decimal("300")),
            [(date(2024, 1, 1), Decimal("300")), (date(2024, 1, 2), Decimal("300"))],
        )


if __name__ == "__main__":
    unittest.main()
