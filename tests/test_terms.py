"""
Unit tests for term / week date arithmetic.
"""

import unittest
from datetime import date

from classswitcher.config import DEFAULT_TERM, DEFAULT_WEEK, TERMS
from classswitcher.exceptions import UnknownTermError
from classswitcher.terms import (
    current_term_and_week,
    format_date_range,
    get_term,
    term_for_date,
    week_date_range,
    week_number_for_date,
)


class TestTerms(unittest.TestCase):
    def test_every_term_starts_on_monday(self) -> None:
        for term in TERMS.values():
            self.assertEqual(term.week_one_start.weekday(), 0, term.code)

    def test_get_term(self) -> None:
        self.assertEqual(get_term("AT").name, "Autumn Term")
        with self.assertRaises(UnknownTermError):
            get_term("XX")
        # still a ValueError for callers that only catch that
        with self.assertRaises(ValueError):
            get_term("")

    def test_week_date_range(self) -> None:
        self.assertEqual(week_date_range("AT", 1), (date(2025, 9, 29), date(2025, 10, 3)))
        self.assertEqual(week_date_range("AT", 2), (date(2025, 10, 6), date(2025, 10, 10)))
        self.assertEqual(week_date_range("WT", 11), (date(2026, 3, 30), date(2026, 4, 3)))

    def test_week_number_for_date(self) -> None:
        self.assertEqual(week_number_for_date(date(2025, 9, 29), "AT"), 1)
        self.assertEqual(week_number_for_date(date(2025, 10, 5), "AT"), 1)  # Sunday
        self.assertEqual(week_number_for_date(date(2025, 10, 6), "AT"), 2)
        self.assertIsNone(week_number_for_date(date(2025, 9, 28), "AT"))
        self.assertIsNone(week_number_for_date(date(2025, 12, 15), "AT"))
        self.assertIsNone(week_number_for_date(date(2025, 10, 6), "XX"))

    def test_term_for_date(self) -> None:
        self.assertEqual(term_for_date(date(2025, 11, 1)), "AT")
        self.assertEqual(term_for_date(date(2026, 2, 2)), "WT")
        self.assertIsNone(term_for_date(date(2025, 12, 25)))

    def test_current_term_and_week(self) -> None:
        self.assertEqual(current_term_and_week(date(2026, 1, 28)), ("WT", 2))
        self.assertEqual(current_term_and_week(date(2025, 8, 1)), (DEFAULT_TERM, DEFAULT_WEEK))

    def test_format_date_range(self) -> None:
        self.assertEqual(format_date_range(date(2025, 10, 6), date(2025, 10, 10)), "Oct 6-10, 2025")
        self.assertEqual(format_date_range(date(2025, 9, 29), date(2025, 10, 3)), "Sep 29 - Oct 3, 2025")


if __name__ == "__main__":
    unittest.main()
