"""
Planning mode state.

Two modes: 'viewing' (the committed timetable) and 'planning' (try other
tutorial/seminar groups without committing). In planning mode the user stages
changes, one per (course, session type). Staged changes live only as long as
the planning session: they are never persisted and are either discarded
(cancel) or handed to the caller for commitment (save / apply).

Visibility and detail mode ('my' / 'all') per course are preferences: the
caller may persist them and restore them on the next planning session.

The state holds references to the catalog and the enrollment baseline it
projects from; the baseline itself is only changed by the caller's commit.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, Optional

from classswitcher.catalog import Catalog
from classswitcher.conflicts import find_conflict_pairs
from classswitcher.logger import log
from classswitcher.model import (
    ALTERNATIVE,
    APPLY_CANCELLED,
    APPLY_NO_CHANGES,
    APPLY_OK,
    DETAIL_MODES,
    DETAIL_MY,
    ENROLLED,
    EXIT_ACTIONS,
    EXIT_CANCEL,
    LECTURE,
    PLANNING,
    SELECTED,
    VIEWING,
    ApplyResult,
    Course,
    Enrollment,
    EventId,
    GroupKey,
    PlanningPreferences,
    ProjectedEvent,
    StagedChange,
)
from classswitcher.projector import project_week


# Outcomes of a click on a projected event
CLICK_DETAILS = "details"
CLICK_DESELECTED = "deselected"
CLICK_SELECTED = "selected"
CLICK_IGNORED = "ignored"

CommitFn = Callable[[dict[GroupKey, StagedChange]], None]
ConfirmFn = Callable[[int], bool]


class PlanningState:
    def __init__(self, catalog: Catalog, enrollment: Enrollment) -> None:
        self.catalog = catalog
        self.enrollment = enrollment

        self.mode = VIEWING
        self.staged: dict[GroupKey, StagedChange] = {}
        self.visible_courses: set[str] = set()
        self.detail_modes: dict[str, str] = {}

        # Result of the last projection in planning mode
        self.conflicting_ids: set[EventId] = set()
        self.conflict_pairs = 0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def is_planning(self) -> bool:
        return self.mode == PLANNING

    def enter_planning(
        self,
        enrolled_courses: Iterable[Course],
        saved: Optional[PlanningPreferences] = None,
    ) -> None:
        """
        Switch to planning mode.

        All given courses start visible in 'my' mode; saved preferences (if
        any) are laid on top. Staged changes always start empty.
        """
        self.mode = PLANNING
        for course in enrolled_courses:
            self.visible_courses.add(course.code)
            self.detail_modes[course.code] = DETAIL_MY

        self.staged.clear()
        self.conflicting_ids.clear()
        self.conflict_pairs = 0

        if saved is not None:
            self.restore_preferences(saved)
        log.info("Entered planning mode (%d courses visible)", len(self.visible_courses))

    def exit_planning(self, action: str) -> Optional[dict[GroupKey, StagedChange]]:
        """
        Leave planning mode.

        'cancel' discards staged changes and returns None. 'save' / 'apply'
        return the staged changes for the caller to commit; the state keeps
        no copy.
        """
        if action not in EXIT_ACTIONS:
            raise ValueError(f"Unknown exit action: {action!r}")

        changes = None if action == EXIT_CANCEL else dict(self.staged)

        self.mode = VIEWING
        self.staged.clear()
        self.visible_courses.clear()
        self.detail_modes.clear()
        self.conflicting_ids.clear()
        self.conflict_pairs = 0

        log.info("Left planning mode (%s, %d changes handed over)", action, len(changes or {}))
        return changes

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def restore_preferences(self, saved: PlanningPreferences) -> None:
        # A saved visibility set replaces the default "all visible"
        self.visible_courses = set(saved.visible_courses)
        self.detail_modes.update(saved.detail_modes)
        log.info("Planning preferences restored (%d courses visible)", len(self.visible_courses))

    def preferences(self) -> PlanningPreferences:
        return PlanningPreferences(set(self.visible_courses), dict(self.detail_modes))

    def toggle_visibility(self, course: str) -> bool:
        """Flip a course's visibility; returns the new value."""
        if course in self.visible_courses:
            self.visible_courses.discard(course)
            return False
        self.visible_courses.add(course)
        return True

    def set_detail_mode(self, course: str, mode: str) -> None:
        if mode not in DETAIL_MODES:
            log.warning("Ignoring unknown detail mode %r for %s", mode, course)
            return
        self.detail_modes[course] = mode

    # ------------------------------------------------------------------
    # Staged changes
    # ------------------------------------------------------------------

    def select_group(self, course: str, session_type: str, from_group: int, to_group: int) -> None:
        """
        Stage to_group for (course, type), or un-stage it when it equals
        the enrolled group.
        """
        key = GroupKey(course, session_type)
        if to_group == from_group:
            if self.staged.pop(key, None) is not None:
                log.info("Staged change removed: %s %s", course, session_type)
            return

        self.staged[key] = StagedChange(course, session_type, from_group, to_group)
        log.info("Staged change: %s %s %d -> %d", course, session_type, from_group, to_group)

    def selected_group(self, course: str, session_type: str, enrolled_group: int) -> int:
        change = self.staged.get(GroupKey(course, session_type))
        return change.to_group if change is not None else enrolled_group

    def changes_for_course(self, course: str) -> list[StagedChange]:
        return [c for c in self.staged.values() if c.course == course]

    def staged_snapshot(self) -> dict[str, dict[str, int]]:
        """Staged changes as {course: {type: group}}."""
        out: dict[str, dict[str, int]] = {}
        for change in self.staged.values():
            out.setdefault(change.course, {})[change.session_type] = change.to_group
        return out

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def events_for_week(self, term: str, week: int, week_start: Optional[date] = None) -> list[ProjectedEvent]:
        """
        Project the week and flag conflicts.

        In viewing mode this is the committed timetable; in planning mode it
        includes staged picks and alternatives. The conflict result is kept
        for apply_changes().
        """
        if self.is_planning():
            events = project_week(
                self.catalog, self.enrollment, term, week, week_start,
                staged=self.staged, preferences=self.preferences(),
            )
        else:
            events = project_week(self.catalog, self.enrollment, term, week, week_start)

        pairs = find_conflict_pairs(events)
        ids: set[EventId] = set()
        for a, b in pairs:
            ids.add(a.id)
            ids.add(b.id)
        for ev in events:
            ev.conflict = ev.id in ids

        self.conflicting_ids = ids
        self.conflict_pairs = len(pairs)
        return events

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def handle_session_click(self, event: ProjectedEvent) -> str:
        """
        React to a click on a projected event.

        lecture / enrolled -> CLICK_DETAILS (caller shows details)
        selected           -> staged pick reverted to the enrolled group
        alternative        -> that group is staged
        """
        state = event.display_state
        if state in (LECTURE, ENROLLED):
            return CLICK_DETAILS

        enrolled = self.enrollment.get(event.course_code, {}).get(event.session_type)
        if enrolled is None:
            return CLICK_IGNORED

        if state == SELECTED:
            self.select_group(event.course_code, event.session_type, enrolled, enrolled)
            return CLICK_DESELECTED
        if state == ALTERNATIVE:
            self.select_group(event.course_code, event.session_type, enrolled, event.group_number)
            return CLICK_SELECTED
        return CLICK_IGNORED

    def apply_changes(self, commit: CommitFn, confirm: Optional[ConfirmFn] = None) -> ApplyResult:
        """
        Hand staged changes to commit() and clear them.

        If the last projection had conflicts, confirm(conflict_count) must
        return True, otherwise nothing happens (no confirm = no).
        """
        if self.conflicting_ids:
            if confirm is None or not confirm(self.conflict_pairs):
                return ApplyResult(APPLY_CANCELLED, "Application cancelled")

        if not self.staged:
            return ApplyResult(APPLY_NO_CHANGES, "No changes to apply")

        changes = dict(self.staged)
        commit(changes)
        self.staged.clear()

        log.info("Committed %d staged change(s)", len(changes))
        return ApplyResult(APPLY_OK, f"Successfully applied {len(changes)} change(s)!", len(changes), changes)
