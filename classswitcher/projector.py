"""
Schedule projection.

Turns the enrollment baseline (+ staged changes + planning preferences) into
the concrete list of events for one week of one term.

Viewing mode (no preferences given): every enrolled group of every course
running in the term, lectures tagged 'lecture', everything else 'enrolled'.

Planning mode:
- hidden courses are skipped
- lectures are always shown
- detail mode 'my' shows the enrolled group and the staged pick (if any)
- detail mode 'all' shows every group of the session type; groups that are
  neither enrolled nor picked are 'alternative'
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Mapping, Optional

from classswitcher.catalog import Catalog
from classswitcher.config import DAY_OFFSETS, is_lecture
from classswitcher.conflicts import time_to_minutes
from classswitcher.logger import log
from classswitcher.model import (
    ALTERNATIVE,
    DETAIL_ALL,
    DETAIL_MY,
    ENROLLED,
    LECTURE,
    SELECTED,
    Course,
    Enrollment,
    EventId,
    GroupKey,
    PlanningPreferences,
    ProjectedEvent,
    Session,
    StagedChange,
)
from classswitcher.terms import week_date_range


def display_state(group: int, enrolled_group: int, selected_group: int) -> str:
    if group == selected_group and group != enrolled_group:
        return SELECTED
    if group == enrolled_group:
        return ENROLLED
    return ALTERNATIVE


def _at(day_date: date, clock: str) -> datetime:
    minutes = time_to_minutes(clock)
    return datetime(day_date.year, day_date.month, day_date.day) + timedelta(minutes=minutes)


def session_to_event(
    session: Session,
    course: Course,
    session_type: str,
    group: int,
    term: str,
    week_start: date,
    state: str,
    slot: int = 0,
) -> Optional[ProjectedEvent]:
    """
    Anchor one session onto the Monday of its week.

    Returns None for a session whose day name is unknown.
    """
    offset = DAY_OFFSETS.get(session.day)
    if offset is None:
        log.warning("Skipping %s %s%d week %d: unknown day %r", course.code, session_type, group, session.week, session.day)
        return None

    day_date = week_start + timedelta(days=offset)
    return ProjectedEvent(
        id=EventId(course.code, session_type, group, session.week, slot),
        course_code=course.code,
        course_name=course.name,
        session_type=session_type,
        group_number=group,
        instructor=session.instructor,
        location=session.room,
        term=term,
        week=session.week,
        day=session.day,
        start_time=session.start,
        end_time=session.end,
        start=_at(day_date, session.start),
        end=_at(day_date, session.end),
        display_state=state,
    )


def _emit_group(
    out: list[ProjectedEvent],
    catalog: Catalog,
    course: Course,
    session_type: str,
    group: int,
    term: str,
    week: int,
    week_start: date,
    state: str,
) -> None:
    # no sessions for this group/term/week is normal: nothing to show
    for slot, session in enumerate(catalog.sessions_for(course.code, session_type, group, term, week)):
        ev = session_to_event(session, course, session_type, group, term, week_start, state, slot)
        if ev is not None:
            out.append(ev)


def project_week(
    catalog: Catalog,
    enrollment: Enrollment,
    term: str,
    week: int,
    week_start: Optional[date] = None,
    staged: Optional[Mapping[GroupKey, StagedChange]] = None,
    preferences: Optional[PlanningPreferences] = None,
) -> list[ProjectedEvent]:
    """
    Project the events of one week.

    Passing preferences switches to planning projection; without them the
    result is the plain viewing schedule and staged changes are ignored.
    week_start defaults to the Monday of the week in the term table.
    """
    if week_start is None:
        week_start, _ = week_date_range(term, week)

    planning = preferences is not None
    staged = staged if planning and staged else {}
    events: list[ProjectedEvent] = []

    for course in catalog.courses_for_term(term):
        entry = enrollment.get(course.code)
        if not entry:
            continue

        if planning:
            assert preferences is not None
            if course.code not in preferences.visible_courses:
                continue
            mode = preferences.detail_modes.get(course.code, DETAIL_MY)
        else:
            mode = DETAIL_MY

        # Lectures first, always shown
        for session_type, group in entry.items():
            if is_lecture(session_type):
                _emit_group(events, catalog, course, session_type, group, term, week, week_start, LECTURE)

        for session_type, enrolled_group in entry.items():
            if is_lecture(session_type):
                continue

            change = staged.get(GroupKey(course.code, session_type))
            selected_group = change.to_group if change is not None else enrolled_group

            if mode == DETAIL_ALL:
                groups = catalog.group_numbers(course.code, session_type)
            else:
                groups = [enrolled_group]
                if selected_group != enrolled_group:
                    groups.append(selected_group)

            for group in groups:
                state = display_state(group, enrolled_group, selected_group)
                _emit_group(events, catalog, course, session_type, group, term, week, week_start, state)

    return events


def project_viewing(catalog: Catalog, enrollment: Enrollment, term: str, week: int,
                    week_start: Optional[date] = None) -> list[ProjectedEvent]:
    return project_week(catalog, enrollment, term, week, week_start)
