"""Unit tests for the calendar date helpers."""

import unittest
from datetime import date, datetime

import pandas as pd

from runway.dates.dates import day_range, horizon_end, to_date, to_optional_date
from runway.errors import InvalidDateRange


class TestToDate(unittest.TestCase):
    """Normalization of date-like values to calendar days."""

    def test_datetime_drops_time_of_day(self):
        self.assertEqual(to_date(datetime(2024, 3, 5, 23, 59)), date(2024, 3, 5))

    def test_timestamp(self):
        self.assertEqual(to_date(pd.Timestamp("2024-03-05 08:30")), date(2024, 3, 5))

    def test_iso_string_with_time_part(self):
        self.assertEqual(to_date("2024-03-05T23:00:00Z"), date(2024, 3, 5))
        self.assertEqual(to_date("2024-03-05"), date(2024, 3, 5))

    def test_missing_values_raise(self):
        for value in (None, "", pd.NaT):
            with self.assertRaises(ValueError):
                to_date(value)

    def test_optional_date_maps_garbage_to_none(self):
        self.assertIsNone(to_optional_date("not a date"))
        self.assertIsNone(to_optional_date(None))
        self.assertEqual(to_optional_date("2024-01-02"), date(2024, 1, 2))


class TestRanges(unittest.TestCase):
    """Day ranges and forward horizons."""

    def test_day_range_is_inclusive(self):
        days = day_range(date(2024, 1, 30), date(2024, 2, 2))
        self.assertEqual(
            days,
            [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)],
        )

    def test_single_day_range(self):
        self.assertEqual(day_range(date(2024, 1, 1), date(2024, 1, 1)), [date(2024, 1, 1)])

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(InvalidDateRange):
            day_range(date(2024, 1, 2), date(2024, 1, 1))

    def test_horizon_end_clamps_month_end(self):
        self.assertEqual(horizon_end(date(2024, 1, 31), 3), date(2024, 4, 30))

    def test_horizon_end_is_capped(self):
        self.assertEqual(horizon_end(date(2024, 1, 1), 24, max_days=365), date(2024, 12, 31))


if __name__ == "__main__":
    unittest.main()
