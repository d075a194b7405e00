"""
Central data model definitions used across the project.

Reference data (courses, sessions) is loaded once and never changed.
The enrollment baseline is a plain nested dict (course -> session type -> group
number) because it is the one structure that gets mutated when changes are
committed.

Composite keys (GroupKey, EventId) are NamedTuples so they hash and compare by
value and can be used directly as dict keys / set members.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple, Optional


# Display states of a projected event
LECTURE = "lecture"
ENROLLED = "enrolled"
SELECTED = "selected"
ALTERNATIVE = "alternative"
DISPLAY_STATES = (LECTURE, ENROLLED, SELECTED, ALTERNATIVE)

# States that count toward a real schedule commitment
COMMITTED_STATES = frozenset({LECTURE, ENROLLED, SELECTED})

# Per-course detail modes in planning
DETAIL_MY = "my"
DETAIL_ALL = "all"
DETAIL_MODES = (DETAIL_MY, DETAIL_ALL)

# Application modes
VIEWING = "viewing"
PLANNING = "planning"

# Ways to leave planning mode
EXIT_CANCEL = "cancel"
EXIT_SAVE = "save"
EXIT_APPLY = "apply"
EXIT_ACTIONS = (EXIT_CANCEL, EXIT_SAVE, EXIT_APPLY)

# Enrollment baseline: course code -> session type -> group number
Enrollment = dict[str, dict[str, int]]


@dataclass(frozen=True)
class Course:
    """
    One course of the catalog (courses.json).
    """

    course_id: str
    code: str
    name: str
    terms: tuple[str, ...]

    def runs_in(self, term: str) -> bool:
        return term in self.terms


@dataclass(frozen=True)
class Session:
    """
    One meeting of a group in a given term/week.

    Times are kept as the original text ("14:00" or "2:00 PM") and only
    normalised when compared or anchored to a date.
    """

    week: int
    day: str
    start: str
    end: str
    room: str = ""
    instructor: str = ""


class GroupKey(NamedTuple):
    """Key of a staged change: one session type of one course."""

    course: str
    session_type: str


class EventId(NamedTuple):
    """
    Stable identifier of a projected event.

    slot is the position of the meeting inside its group's week, so a group
    meeting twice in the same week yields two distinct ids.
    """

    course: str
    session_type: str
    group: int
    week: int
    slot: int = 0

    def __str__(self) -> str:
        return f"{self.course}-{self.session_type}{self.group}-w{self.week}-{self.slot}"


@dataclass(frozen=True)
class StagedChange:
    course: str
    session_type: str
    from_group: int
    to_group: int

    @property
    def key(self) -> GroupKey:
        return GroupKey(self.course, self.session_type)

    def label(self) -> str:
        return f"{self.session_type}{self.from_group}→{self.to_group}"


@dataclass
class ProjectedEvent:
    """
    One concrete calendar block produced for a week.

    Never persisted; rebuilt on every projection. The conflict flag is
    filled in after conflict detection.
    """

    id: EventId
    course_code: str
    course_name: str
    session_type: str
    group_number: int
    instructor: str
    location: str
    term: str
    week: int
    day: str
    start_time: str
    end_time: str
    start: datetime
    end: datetime
    display_state: str
    conflict: bool = False


@dataclass
class PlanningPreferences:
    """
    Per-course planning settings that survive between planning sessions.
    """

    visible_courses: set[str] = field(default_factory=set)
    detail_modes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "visibleCourses": sorted(self.visible_courses),
            "detailModeByCourse": dict(sorted(self.detail_modes.items())),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "PlanningPreferences":
        visible = data.get("visibleCourses", [])
        modes = data.get("detailModeByCourse", {})
        prefs = cls()
        if isinstance(visible, list):
            prefs.visible_courses = {str(c) for c in visible}
        if isinstance(modes, dict):
            prefs.detail_modes = {str(c): str(m) for c, m in modes.items() if m in DETAIL_MODES}
        return prefs


# apply_changes outcomes
APPLY_OK = "applied"
APPLY_CANCELLED = "cancelled"
APPLY_NO_CHANGES = "no_changes"


@dataclass
class ApplyResult:
    status: str
    message: str
    change_count: int = 0
    changes: Optional[dict[GroupKey, StagedChange]] = None

    @property
    def success(self) -> bool:
        return self.status == APPLY_OK
