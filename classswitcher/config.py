"""
Configuration constants.

Everything the rest of the package treats as "settings" lives here:
- the academic term table (week one start date + number of weeks)
- which session types count as lectures
- default locations of the reference data and of the persisted state

Paths are resolved through small functions instead of constants so tests and
the CLI can point them somewhere else (environment variables or arguments).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Term:
    code: str
    name: str
    week_one_start: date  # always a Monday
    total_weeks: int


TERMS: dict[str, Term] = {
    "AT": Term("AT", "Autumn Term", date(2025, 9, 29), 11),
    "WT": Term("WT", "Winter Term", date(2026, 1, 19), 11),
    "ST": Term("ST", "Spring Term", date(2026, 5, 4), 11),
}

# Used when today's date is outside every term
DEFAULT_TERM = "AT"
DEFAULT_WEEK = 1

# Lectures are always shown and can never be swapped
LECTURE_TYPES = frozenset({"LEC"})

DAY_OFFSETS: dict[str, int] = {"Mon": 0, "Tue": 1, "Wed": 2, "Thu": 3, "Fri": 4, "Sat": 5, "Sun": 6}
WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri"]

SESSION_TYPE_LABELS: dict[str, str] = {"LEC": "Lecture", "CLA": "Class", "SEM": "Seminar"}

ENV_DATA = "CLASSSWITCHER_DATA"
ENV_STATE_DIR = "CLASSSWITCHER_STATE_DIR"
ENV_LOG_LEVEL = "CLASSSWITCHER_LOG_LEVEL"


def is_lecture(session_type: str) -> bool:
    return session_type in LECTURE_TYPES


def default_data_source() -> str:
    """
    Return where reference data is read from: a directory or an http(s) base URL.

    Falls back to the sample data bundled inside the package.
    """
    return os.environ.get(ENV_DATA) or str(PACKAGE_DIR / "data")


def default_state_dir() -> Path:
    """
    Return the directory holding persisted user state (colours, mode,
    planning preferences, enrollment overrides).
    """
    env = os.environ.get(ENV_STATE_DIR)
    if env:
        return Path(env)
    return Path.home() / ".classswitcher"


def default_log_level() -> str:
    return os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()
