"""
Term / week date arithmetic.

Every term starts on a Monday (week one) and has a fixed number of weeks:
    week N starts on week_one_start + (N - 1) * 7 days
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from classswitcher.config import DEFAULT_TERM, DEFAULT_WEEK, TERMS, Term
from classswitcher.exceptions import UnknownTermError


_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def get_term(term_code: str) -> Term:
    term = TERMS.get(term_code)
    if term is None:
        raise UnknownTermError(f"Invalid term code: {term_code!r}")
    return term


def week_date_range(term_code: str, week: int) -> tuple[date, date]:
    """
    Return (monday, friday) of the given week of a term.
    """
    term = get_term(term_code)
    start = term.week_one_start + timedelta(days=(week - 1) * 7)
    return start, start + timedelta(days=4)


def week_number_for_date(d: date, term_code: str) -> Optional[int]:
    """
    Return the 1-based week of the term that contains d, or None if d is
    outside the term.
    """
    term = TERMS.get(term_code)
    if term is None:
        return None

    week = (d - term.week_one_start).days // 7 + 1
    if 1 <= week <= term.total_weeks:
        return week
    return None


def term_for_date(d: date) -> Optional[str]:
    for code in TERMS:
        if week_number_for_date(d, code) is not None:
            return code
    return None


def current_term_and_week(today: Optional[date] = None) -> tuple[str, int]:
    today = today or date.today()
    term = term_for_date(today)
    if term is None:
        return DEFAULT_TERM, DEFAULT_WEEK
    week = week_number_for_date(today, term)
    assert week is not None
    return term, week


def format_date_range(start: date, end: date) -> str:
    """
    'Oct 6-10, 2025' within one month, 'Sep 29 - Oct 3, 2025' across months.
    """
    if start.month == end.month:
        return f"{_MONTHS[start.month - 1]} {start.day}-{end.day}, {start.year}"
    return f"{_MONTHS[start.month - 1]} {start.day} - {_MONTHS[end.month - 1]} {end.day}, {start.year}"
