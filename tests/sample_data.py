"""
Small reference dataset shared by the projector / planning tests.

Week 2 of AT (Mon 2025-10-06):
- EC101 LEC Mon 09:00-10:00 and Thu 11:00-12:00 (weeks 1-3)
- EC101 CLA 1 Tue, CLA 2 Wed 10:00-11:30, CLA 4 Wed 10:00-11:30; CLA 3 only in week 3
- ST201 LEC Mon 09:30-10:30 (clashes with the EC101 lecture), SEM 1 Thu, SEM 2 Fri
- MA102 CLA 1 Fri 09:00-10:00, CLA 2 Fri 11:00-12:00
- XX999 runs in WT only
"""

from datetime import date

from classswitcher.catalog import Catalog, build_catalog, parse_enrollment
from classswitcher.model import Enrollment


WEEK2_START = date(2025, 10, 6)

COURSES = [
    {"id": "1", "code": "EC101", "name": "Principles of Economics", "terms": ["AT"]},
    {"id": "2", "code": "ST201", "name": "Introductory Statistics", "terms": ["AT"]},
    {"id": "3", "code": "MA102", "name": "Mathematics for Economists", "terms": ["AT"]},
    {"id": "4", "code": "XX999", "name": "Winter Only", "terms": ["WT"]},
]

SESSIONS = {
    "EC101": {
        "LEC": {
            "1": {
                "AT": [
                    {"weeks": [1, 2, 3], "day": "Mon", "start": "09:00", "end": "10:00", "room": "OLD.1", "instructor": "Smith"},
                    {"weeks": [1, 2, 3], "day": "Thu", "start": "11:00", "end": "12:00", "room": "OLD.1", "instructor": "Smith"},
                ]
            }
        },
        "CLA": {
            "1": {"AT": [{"week": 2, "day": "Tue", "start": "13:00", "end": "14:00", "room": "K1"}]},
            "2": {"AT": [{"week": 2, "day": "Wed", "start": "10:00", "end": "11:30", "room": "K2"}]},
            "3": {"AT": [{"week": 3, "day": "Thu", "start": "15:00", "end": "16:00", "room": "K3"}]},
            "4": {"AT": [{"week": 2, "day": "Wed", "start": "10:00", "end": "11:30", "room": "K4"}]},
        },
    },
    "ST201": {
        "LEC": {"1": {"AT": [{"week": 2, "day": "Mon", "start": "9:30 AM", "end": "10:30 AM", "room": "NAB"}]}},
        "SEM": {
            "1": {"AT": [{"week": 2, "day": "Thu", "start": "09:00", "end": "10:00", "room": "S1"}]},
            "2": {"AT": [{"week": 2, "day": "Fri", "start": "2:00 PM", "end": "3:00 PM", "room": "S2"}]},
        },
    },
    "MA102": {
        "CLA": {
            "1": {"AT": [{"week": 2, "day": "Fri", "start": "09:00", "end": "10:00", "room": "M1"}]},
            "2": {"AT": [{"week": 2, "day": "Fri", "start": "11:00", "end": "12:00", "room": "M2"}]},
        }
    },
    "XX999": {
        "LEC": {"1": {"WT": [{"week": 2, "day": "Mon", "start": "09:00", "end": "10:00"}]}},
    },
}

ENROLLMENT = {
    "EC101": {"LEC": 1, "CLA": 2},
    "ST201": {"LEC": 1, "SEM": 1},
    "MA102": {"CLA": 1},
    "XX999": {"LEC": 1},
}


def make_catalog() -> Catalog:
    return build_catalog(COURSES, SESSIONS)


def make_enrollment() -> Enrollment:
    # fresh copy: commits mutate the baseline
    return parse_enrollment(ENROLLMENT)
