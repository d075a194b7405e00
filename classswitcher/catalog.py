"""
Reference data: course catalog, session occurrences and the enrollment baseline.

The data source is either a local directory or an http(s) base URL holding:

    courses.json     [{"id", "code", "name", "terms": [...]}]
    sessions.json    {code: {type: {group: {term: [session, ...]}}}}
    enrollment.json  {code: {type: group}}

A session is {"week" | "weeks", "day", "start", "end", "room", "instructor"};
"weeks": [1, 2, ...] is shorthand for one identical session per listed week.

Everything is loaded once into memory and indexed for direct lookup by
(course, session type, group, term), so projecting a week never scans the
whole dataset.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, NamedTuple, Optional

import requests

from classswitcher.exceptions import DataLoadError
from classswitcher.logger import log
from classswitcher.model import Course, Enrollment, Session, StagedChange


REQUEST_TIMEOUT = 10  # seconds

COURSES_FILE = "courses.json"
SESSIONS_FILE = "sessions.json"
ENROLLMENT_FILE = "enrollment.json"


class SessionKey(NamedTuple):
    course: str
    session_type: str
    group: int
    term: str


@dataclass
class Catalog:
    courses: list[Course] = field(default_factory=list)
    course_by_code: dict[str, Course] = field(default_factory=dict)
    sessions: dict[SessionKey, list[Session]] = field(default_factory=dict)
    # (course, type) -> sorted group numbers that exist in the data
    groups: dict[tuple[str, str], list[int]] = field(default_factory=dict)

    def courses_for_term(self, term: str) -> list[Course]:
        return [c for c in self.courses if c.runs_in(term)]

    def sessions_for(self, course: str, session_type: str, group: int, term: str, week: int) -> list[Session]:
        group_sessions = self.sessions.get(SessionKey(course, session_type, group, term), [])
        return [s for s in group_sessions if s.week == week]

    def group_numbers(self, course: str, session_type: str) -> list[int]:
        return list(self.groups.get((course, session_type), []))

    def available_group_count(self, course: str, exclude_types: Iterable[str] = ()) -> int:
        skip = set(exclude_types)
        return sum(
            len(numbers) for (code, session_type), numbers in self.groups.items()
            if code == course and session_type not in skip
        )


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def _load_json(source: str, filename: str) -> Any:
    """
    Load one JSON document from the data source.

    Unlike persisted user state, reference data is required: failures are
    raised as DataLoadError.
    """
    if _is_url(source):
        url = f"{source.rstrip('/')}/{filename}"
        try:
            resp = requests.get(url, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DataLoadError(f"Could not load {url}: {e}") from e

    path = Path(source) / filename
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Could not load {path}: {e}") from e


def _parse_courses(raw: Any) -> list[Course]:
    if not isinstance(raw, list):
        raise DataLoadError(f"{COURSES_FILE} must contain a list")

    courses: list[Course] = []
    for c in raw:
        if not isinstance(c, dict):
            continue
        code = str(c.get("code", "")).strip()
        if not code:
            continue
        terms = c.get("terms", [])
        courses.append(
            Course(
                course_id=str(c.get("id", code)),
                code=code,
                name=str(c.get("name", "") or ""),
                terms=tuple(str(t) for t in terms) if isinstance(terms, list) else (),
            )
        )
    return courses


def _expand_session(raw: dict[str, Any]) -> list[Session]:
    weeks = raw.get("weeks")
    if weeks is None:
        weeks = [raw.get("week")]

    out: list[Session] = []
    for week in weeks:
        try:
            week_no = int(week)
        except (TypeError, ValueError):
            continue
        out.append(
            Session(
                week=week_no,
                day=str(raw.get("day", "")).strip(),
                start=str(raw.get("start", "")).strip(),
                end=str(raw.get("end", "")).strip(),
                room=str(raw.get("room", "") or ""),
                instructor=str(raw.get("instructor", "") or ""),
            )
        )
    return out


def _parse_sessions(raw: Any) -> tuple[dict[SessionKey, list[Session]], dict[tuple[str, str], list[int]]]:
    if not isinstance(raw, dict):
        raise DataLoadError(f"{SESSIONS_FILE} must contain an object")

    sessions: dict[SessionKey, list[Session]] = defaultdict(list)
    groups: dict[tuple[str, str], set[int]] = defaultdict(set)

    for code, by_type in raw.items():
        if not isinstance(by_type, dict):
            continue
        for session_type, by_group in by_type.items():
            if not isinstance(by_group, dict):
                continue
            for group_str, by_term in by_group.items():
                try:
                    group = int(group_str)
                except (TypeError, ValueError):
                    log.warning("Skipping %s %s group %r: not a number", code, session_type, group_str)
                    continue
                groups[(code, session_type)].add(group)
                if not isinstance(by_term, dict):
                    continue
                for term, items in by_term.items():
                    if not isinstance(items, list):
                        continue
                    key = SessionKey(code, session_type, group, term)
                    for item in items:
                        if isinstance(item, dict):
                            sessions[key].extend(_expand_session(item))

    return dict(sessions), {k: sorted(v) for k, v in groups.items()}


def parse_enrollment(raw: Any) -> Enrollment:
    """
    Normalise {course: {type: group}} into the baseline mapping.

    Entries that are not numbers are dropped.
    """
    enrollment: Enrollment = {}
    if not isinstance(raw, dict):
        return enrollment

    for code, by_type in raw.items():
        if not isinstance(by_type, dict):
            continue
        entry: dict[str, int] = {}
        for session_type, group in by_type.items():
            try:
                entry[str(session_type)] = int(group)
            except (TypeError, ValueError):
                continue
        enrollment[str(code)] = entry
    return enrollment


def build_catalog(courses_raw: Any, sessions_raw: Any) -> Catalog:
    courses = _parse_courses(courses_raw)
    sessions, groups = _parse_sessions(sessions_raw)
    return Catalog(
        courses=courses,
        course_by_code={c.code: c for c in courses},
        sessions=sessions,
        groups=groups,
    )


def load_catalog(source: str) -> tuple[Catalog, Enrollment]:
    """
    Load courses, sessions and the enrollment baseline from a data source.
    """
    catalog = build_catalog(_load_json(source, COURSES_FILE), _load_json(source, SESSIONS_FILE))
    enrollment = parse_enrollment(_load_json(source, ENROLLMENT_FILE))

    log.info(
        "Data loaded from %s: %d courses, %d session groups, %d enrolled courses",
        source, len(catalog.courses), len(catalog.sessions), len(enrollment),
    )
    return catalog, enrollment


def apply_enrollment_overrides(enrollment: Enrollment, overrides: dict[str, dict[str, int]]) -> int:
    """
    Apply persisted overrides onto the baseline (in place).

    Only existing (course, type) entries are overridden. Returns the number
    of entries changed.
    """
    applied = 0
    for code, changes in overrides.items():
        entry = enrollment.get(code)
        if entry is None:
            log.warning("Override for %s ignored: course not in enrollment", code)
            continue
        for session_type, group in changes.items():
            if session_type not in entry:
                continue
            if entry[session_type] != group:
                log.info("Override: %s %s: %s -> %s", code, session_type, entry[session_type], group)
                entry[session_type] = group
                applied += 1
    return applied


def commit_staged_changes(
    enrollment: Enrollment,
    changes: Iterable[StagedChange],
    overrides: Optional[dict[str, dict[str, int]]] = None,
) -> dict[str, dict[str, int]]:
    """
    Write staged changes into the baseline and the overrides map.

    Changes are trusted as-is (the caller only stages groups it offered).
    Returns the updated overrides, ready to be persisted.
    """
    out: dict[str, dict[str, int]] = {c: dict(t) for c, t in (overrides or {}).items()}
    for change in changes:
        entry = enrollment.get(change.course)
        if entry is not None:
            entry[change.session_type] = change.to_group
        out.setdefault(change.course, {})[change.session_type] = change.to_group
    return out


def assign_course_colors(courses: Iterable[Course], saved: Optional[dict[str, int]] = None) -> dict[str, int]:
    """
    Give every course a stable colour index.

    Saved indexes are kept; new courses get the lowest unused index.
    """
    colors = dict(saved or {})
    used = set(colors.values())
    next_index = 0
    for course in courses:
        if course.code in colors:
            continue
        while next_index in used:
            next_index += 1
        colors[course.code] = next_index
        used.add(next_index)
    return colors
