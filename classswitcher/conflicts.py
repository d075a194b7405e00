"""
Conflict detection.

Given the events projected for a week, detect overlaps between sessions of
different courses on the same day.
Overlap rule (half-open intervals, back-to-back is fine):
    start < other_end AND end > other_start

Only events that are part of the real schedule (lecture, enrolled, selected)
take part. Alternatives are never flagged.
"""

from __future__ import annotations

import re
from typing import Iterable, NamedTuple

from classswitcher.exceptions import InvalidTimeError
from classswitcher.model import COMMITTED_STATES, EventId, ProjectedEvent


_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])?$")


class Interval(NamedTuple):
    day: str
    start: int  # minutes since midnight
    end: int


def time_to_minutes(text: str) -> int:
    """
    Convert 'HH:MM' (24h) or 'H:MM AM/PM' (12h) to minutes since midnight.

    12:00 AM -> 0, 12:00 PM -> 720.
    Raises InvalidTimeError for anything else.
    """
    m = _TIME_RE.match(str(text).strip())
    if not m:
        raise InvalidTimeError(f"Invalid time format: {text!r}")

    h = int(m.group(1))
    minutes = int(m.group(2))
    suffix = (m.group(3) or "").upper()

    if suffix:
        if not (1 <= h <= 12 and 0 <= minutes <= 59):
            raise InvalidTimeError(f"Invalid time value: {text!r}")
        if h == 12:
            h = 0
        if suffix == "PM":
            h += 12
    elif not (0 <= h <= 23 and 0 <= minutes <= 59):
        raise InvalidTimeError(f"Invalid time value: {text!r}")

    return h * 60 + minutes


def make_interval(day: str, start: str, end: str) -> Interval:
    return Interval(day, time_to_minutes(start), time_to_minutes(end))


def overlaps(a: Interval, b: Interval) -> bool:
    if a.day != b.day:
        return False
    return a.start < b.end and b.start < a.end


def _committed(events: Iterable[ProjectedEvent]) -> list[tuple[Interval, ProjectedEvent]]:
    # Pre-parse once; malformed times propagate
    return [
        (make_interval(ev.day, ev.start_time, ev.end_time), ev)
        for ev in events
        if ev.display_state in COMMITTED_STATES
    ]


def find_conflict_pairs(events: Iterable[ProjectedEvent]) -> list[tuple[ProjectedEvent, ProjectedEvent]]:
    """
    Return every overlapping pair (A, B) of committed events, each pair once (i<j).

    Pairwise comparison, O(n^2) in the number of committed events of a week.
    """
    parsed = _committed(events)
    pairs: list[tuple[ProjectedEvent, ProjectedEvent]] = []

    for i in range(len(parsed)):
        iv1, ev1 = parsed[i]
        for j in range(i + 1, len(parsed)):
            iv2, ev2 = parsed[j]
            if ev1.id == ev2.id:
                continue
            # sessions of one course never conflict with each other
            if ev1.course_code == ev2.course_code:
                continue
            if ev1.week != ev2.week:
                continue
            if overlaps(iv1, iv2):
                pairs.append((ev1, ev2))

    return pairs


def detect_conflicts(events: Iterable[ProjectedEvent]) -> set[EventId]:
    """
    Return the ids of all committed events that overlap another course's event.
    """
    ids: set[EventId] = set()
    for a, b in find_conflict_pairs(events):
        ids.add(a.id)
        ids.add(b.id)
    return ids


def conflict_count(events: Iterable[ProjectedEvent]) -> int:
    """
    Number of distinct conflicting pairs (a three-way clash counts 3).
    """
    return len(find_conflict_pairs(events))


def mark_conflicts(events: list[ProjectedEvent]) -> set[EventId]:
    """
    Set the conflict flag on each event and return the conflicting ids.
    """
    ids = detect_conflicts(events)
    for ev in events:
        ev.conflict = ev.id in ids
    return ids
