"""
Unit tests for the planning state machine.
"""

import unittest

from classswitcher.catalog import commit_staged_changes
from classswitcher.model import (
    ALTERNATIVE,
    APPLY_CANCELLED,
    APPLY_NO_CHANGES,
    APPLY_OK,
    DETAIL_ALL,
    DETAIL_MY,
    ENROLLED,
    PLANNING,
    SELECTED,
    VIEWING,
    GroupKey,
    PlanningPreferences,
)
from classswitcher.planning import (
    CLICK_DESELECTED,
    CLICK_DETAILS,
    CLICK_SELECTED,
    PlanningState,
)
from classswitcher.projector import project_viewing
from tests.sample_data import WEEK2_START, make_catalog, make_enrollment


class PlanningTestBase(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = make_catalog()
        self.enrollment = make_enrollment()
        self.state = PlanningState(self.catalog, self.enrollment)
        self.courses = [c for c in self.catalog.courses_for_term("AT") if c.code in self.enrollment]
        self.committed = []

    def commit(self, changes) -> None:
        self.committed.append(changes)
        commit_staged_changes(self.enrollment, changes.values())

    def events(self):
        return self.state.events_for_week("AT", 2, WEEK2_START)


class TestTransitions(PlanningTestBase):
    def test_starts_in_viewing(self) -> None:
        self.assertEqual(self.state.mode, VIEWING)
        self.assertFalse(self.state.is_planning())

    def test_enter_planning_defaults(self) -> None:
        self.state.enter_planning(self.courses)
        self.assertEqual(self.state.mode, PLANNING)
        self.assertEqual(self.state.visible_courses, {"EC101", "ST201", "MA102"})
        self.assertEqual(set(self.state.detail_modes.values()), {DETAIL_MY})
        self.assertEqual(self.state.staged, {})

    def test_enter_planning_restores_saved_preferences(self) -> None:
        saved = PlanningPreferences({"EC101"}, {"EC101": DETAIL_ALL})
        self.state.enter_planning(self.courses, saved)
        self.assertEqual(self.state.visible_courses, {"EC101"})
        self.assertEqual(self.state.detail_modes["EC101"], DETAIL_ALL)
        self.assertEqual(self.state.detail_modes["ST201"], DETAIL_MY)

    def test_cancel_discards_staged_changes(self) -> None:
        self.state.enter_planning(self.courses)
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.select_group("ST201", "SEM", 1, 2)
        self.state.select_group("MA102", "CLA", 1, 2)
        self.assertEqual(len(self.state.staged), 3)

        self.assertIsNone(self.state.exit_planning("cancel"))
        self.assertEqual(self.state.mode, VIEWING)
        self.assertEqual(self.state.staged, {})
        self.assertEqual(self.state.visible_courses, set())
        self.assertEqual(self.enrollment["EC101"]["CLA"], 2)
        self.assertEqual(self.enrollment["ST201"]["SEM"], 1)
        self.assertEqual(self.enrollment["MA102"]["CLA"], 1)

    def test_save_hands_changes_over(self) -> None:
        self.state.enter_planning(self.courses)
        self.state.select_group("EC101", "CLA", 2, 4)

        changes = self.state.exit_planning("save")
        self.assertEqual(list(changes), [GroupKey("EC101", "CLA")])
        self.assertEqual(changes[GroupKey("EC101", "CLA")].to_group, 4)
        self.assertEqual(self.state.staged, {})
        # the caller commits, not the state
        self.assertEqual(self.enrollment["EC101"]["CLA"], 2)

    def test_unknown_exit_action(self) -> None:
        self.state.enter_planning(self.courses)
        with self.assertRaises(ValueError):
            self.state.exit_planning("discard")
        self.assertTrue(self.state.is_planning())

    def test_reenter_starts_clean(self) -> None:
        self.state.enter_planning(self.courses)
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.exit_planning("cancel")
        self.state.enter_planning(self.courses)
        self.assertEqual(self.state.staged, {})


class TestPreferences(PlanningTestBase):
    def setUp(self) -> None:
        super().setUp()
        self.state.enter_planning(self.courses)

    def test_toggle_visibility(self) -> None:
        self.assertFalse(self.state.toggle_visibility("ST201"))
        self.assertNotIn("ST201", self.state.visible_courses)
        self.assertTrue(self.state.toggle_visibility("ST201"))
        self.assertIn("ST201", self.state.visible_courses)

    def test_set_detail_mode(self) -> None:
        self.state.set_detail_mode("EC101", DETAIL_ALL)
        self.assertEqual(self.state.detail_modes["EC101"], DETAIL_ALL)

        with self.assertLogs("classswitcher", level="WARNING"):
            self.state.set_detail_mode("EC101", "some")
        self.assertEqual(self.state.detail_modes["EC101"], DETAIL_ALL)

    def test_preferences_round_trip_through_dict(self) -> None:
        self.state.toggle_visibility("MA102")
        self.state.set_detail_mode("ST201", DETAIL_ALL)
        data = self.state.preferences().to_dict()
        self.assertEqual(data["visibleCourses"], ["EC101", "ST201"])
        self.assertEqual(data["detailModeByCourse"]["ST201"], DETAIL_ALL)
        self.assertEqual(PlanningPreferences.from_dict(data), self.state.preferences())


class TestStaging(PlanningTestBase):
    def setUp(self) -> None:
        super().setUp()
        self.state.enter_planning(self.courses)

    def test_select_is_idempotent(self) -> None:
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.select_group("EC101", "CLA", 2, 4)
        self.assertEqual(len(self.state.staged), 1)
        self.assertEqual(self.state.selected_group("EC101", "CLA", 2), 4)

    def test_reselect_replaces_pick(self) -> None:
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.select_group("EC101", "CLA", 2, 1)
        self.assertEqual(self.state.staged[GroupKey("EC101", "CLA")].to_group, 1)

    def test_selecting_enrolled_group_unstages(self) -> None:
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.select_group("EC101", "CLA", 2, 2)
        self.assertEqual(self.state.staged, {})
        self.assertEqual(self.state.selected_group("EC101", "CLA", 2), 2)
        # nothing staged: still a no-op
        self.state.select_group("EC101", "CLA", 2, 2)
        self.assertEqual(self.state.staged, {})

    def test_changes_for_course_and_snapshot(self) -> None:
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.select_group("ST201", "SEM", 1, 2)
        self.assertEqual([c.label() for c in self.state.changes_for_course("EC101")], ["CLA2→4"])
        self.assertEqual(self.state.changes_for_course("MA102"), [])
        self.assertEqual(self.state.staged_snapshot(), {"EC101": {"CLA": 4}, "ST201": {"SEM": 2}})


class TestClicks(PlanningTestBase):
    def setUp(self) -> None:
        super().setUp()
        self.state.enter_planning(self.courses)
        self.state.set_detail_mode("EC101", DETAIL_ALL)

    def _find(self, events, session_type, group):
        return [e for e in events if e.course_code == "EC101" and e.session_type == session_type
                and e.group_number == group][0]

    def test_click_cycle(self) -> None:
        events = self.events()
        self.assertEqual(self.state.handle_session_click(self._find(events, "LEC", 1)), CLICK_DETAILS)
        self.assertEqual(self.state.handle_session_click(self._find(events, "CLA", 2)), CLICK_DETAILS)

        alt = self._find(events, "CLA", 4)
        self.assertEqual(alt.display_state, ALTERNATIVE)
        self.assertEqual(self.state.handle_session_click(alt), CLICK_SELECTED)

        events = self.events()
        picked = self._find(events, "CLA", 4)
        self.assertEqual(picked.display_state, SELECTED)
        self.assertEqual(self._find(events, "CLA", 2).display_state, ENROLLED)

        self.assertEqual(self.state.handle_session_click(picked), CLICK_DESELECTED)
        self.assertEqual(self.state.staged, {})

    def test_clicking_other_alternative_moves_pick(self) -> None:
        self.state.handle_session_click(self._find(self.events(), "CLA", 4))
        self.state.handle_session_click(self._find(self.events(), "CLA", 1))
        self.assertEqual(self.state.staged_snapshot(), {"EC101": {"CLA": 1}})


class TestConflictsAndApply(PlanningTestBase):
    def setUp(self) -> None:
        super().setUp()
        self.state.enter_planning(self.courses)

    def test_events_carry_conflict_flags(self) -> None:
        events = self.events()
        flagged = {(e.course_code, e.day) for e in events if e.conflict}
        self.assertEqual(flagged, {("EC101", "Mon"), ("ST201", "Mon")})
        self.assertEqual(self.state.conflict_pairs, 1)
        self.assertEqual(len(self.state.conflicting_ids), 2)

    def test_hiding_course_clears_its_conflicts(self) -> None:
        self.state.toggle_visibility("ST201")
        events = self.events()
        self.assertFalse(any(e.conflict for e in events))
        self.assertEqual(self.state.conflict_pairs, 0)

    def test_apply_without_changes(self) -> None:
        self.state.toggle_visibility("ST201")
        self.events()
        result = self.state.apply_changes(self.commit)
        self.assertEqual(result.status, APPLY_NO_CHANGES)
        self.assertFalse(result.success)
        self.assertEqual(self.committed, [])

    def test_apply_with_conflicts_needs_confirmation(self) -> None:
        self.state.select_group("EC101", "CLA", 2, 4)
        self.events()

        result = self.state.apply_changes(self.commit)
        self.assertEqual(result.status, APPLY_CANCELLED)

        asked = []
        result = self.state.apply_changes(self.commit, confirm=lambda n: asked.append(n) or False)
        self.assertEqual(result.status, APPLY_CANCELLED)
        self.assertEqual(asked, [1])
        self.assertEqual(self.committed, [])
        self.assertEqual(len(self.state.staged), 1)

    def test_apply_confirmed_despite_conflicts(self) -> None:
        self.state.select_group("EC101", "CLA", 2, 4)
        self.events()
        result = self.state.apply_changes(self.commit, confirm=lambda n: True)
        self.assertEqual(result.status, APPLY_OK)
        self.assertEqual(result.change_count, 1)
        self.assertEqual(self.enrollment["EC101"]["CLA"], 4)

    def test_apply_commits_and_updates_viewing(self) -> None:
        self.state.toggle_visibility("ST201")
        self.state.select_group("EC101", "CLA", 2, 4)
        self.state.select_group("MA102", "CLA", 1, 2)
        self.events()

        result = self.state.apply_changes(self.commit)
        self.assertTrue(result.success)
        self.assertEqual(result.change_count, 2)
        self.assertIn("2 change", result.message)
        self.assertEqual(self.state.staged, {})
        self.assertEqual(len(self.committed), 1)

        events = project_viewing(self.catalog, self.enrollment, "AT", 2, WEEK2_START)
        groups = {(e.course_code, e.session_type): e.group_number for e in events if e.session_type == "CLA"}
        self.assertEqual(groups, {("EC101", "CLA"): 4, ("MA102", "CLA"): 2})
        self.assertEqual({e.display_state for e in events if e.session_type == "CLA"}, {ENROLLED})


if __name__ == "__main__":
    unittest.main()
