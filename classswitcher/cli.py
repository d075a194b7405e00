"""
CLI (Command Line Interface).

Quick terminal commands, e.g.:

    classswitcher week --term AT --week 3
    classswitcher conflicts
    classswitcher enrollment
    classswitcher plan --week 3 --stage EC101:CLA:4 --all ST201 [--apply [--yes]]
    classswitcher export out.ics --term AT
    classswitcher reset
    classswitcher interactive

Note:
- The interactive UI lives in classswitcher/interactive.py
- `plan` is a one-shot preview: staged changes only exist for the duration
  of the command unless --apply commits them
- This CLI prints plain text (no rich formatting)
"""

from __future__ import annotations

import argparse
from collections import defaultdict
from pathlib import Path
from typing import Optional

from classswitcher import storage
from classswitcher.catalog import (
    Catalog,
    apply_enrollment_overrides,
    commit_staged_changes,
    load_catalog,
)
from classswitcher.config import SESSION_TYPE_LABELS, WEEKDAYS, default_data_source, is_lecture
from classswitcher.conflicts import find_conflict_pairs, mark_conflicts
from classswitcher.exceptions import DataLoadError, UnknownTermError
from classswitcher.export_ics import export_events_to_ics
from classswitcher.model import (
    APPLY_CANCELLED,
    DETAIL_ALL,
    ENROLLED,
    LECTURE,
    Enrollment,
    GroupKey,
    ProjectedEvent,
    StagedChange,
)
from classswitcher.planning import PlanningState
from classswitcher.projector import project_viewing
from classswitcher.terms import current_term_and_week, format_date_range, get_term, week_date_range


def _load_context(args: argparse.Namespace) -> tuple[Catalog, Enrollment]:
    """
    Load reference data and lay the user's committed overrides on top.
    """
    catalog, enrollment = load_catalog(args.data or default_data_source())
    apply_enrollment_overrides(enrollment, storage.load_enrollment_overrides(args.state_dir))
    return catalog, enrollment


def _resolve_week(args: argparse.Namespace) -> tuple[str, int]:
    """
    Term/week from the arguments, defaulting to today's term and week.
    Raises UnknownTermError / ValueError for values outside the term table.
    """
    cur_term, cur_week = current_term_and_week()
    term = (getattr(args, "term", None) or cur_term).strip().upper()
    week = getattr(args, "week", None)
    if week is None:
        week = cur_week if term == cur_term else 1

    total = get_term(term).total_weeks
    if not (1 <= week <= total):
        raise ValueError(f"Week must be between 1 and {total} for term {term}")
    return term, week


def _event_line(ev: ProjectedEvent) -> str:
    label = SESSION_TYPE_LABELS.get(ev.session_type, ev.session_type)
    group = "" if is_lecture(ev.session_type) else f" G{ev.group_number}"
    bits = [f"{ev.start:%H:%M}-{ev.end:%H:%M}", ev.course_code, f"{label}{group}"]
    if ev.location:
        bits.append(f"@ {ev.location}")
    line = " | ".join(bits)
    if ev.display_state not in (LECTURE, ENROLLED):
        line += f" [{ev.display_state}]"
    if ev.conflict:
        line += " [CONFLICT]"
    return line


def _print_week(term: str, week: int, events: list[ProjectedEvent]) -> None:
    start, end = week_date_range(term, week)
    print(f"{get_term(term).name} - Week {week} ({format_date_range(start, end)})")

    if not events:
        print("No sessions this week.")
        return

    by_day: dict[str, list[ProjectedEvent]] = defaultdict(list)
    for ev in events:
        by_day[ev.day].append(ev)

    days = WEEKDAYS + sorted(d for d in by_day if d not in WEEKDAYS)
    for day in days:
        if day not in by_day:
            continue
        print(f"{day}:")
        for ev in sorted(by_day[day], key=lambda e: (e.start, e.course_code)):
            print(f"  - {_event_line(ev)}")


def _print_conflicts(events: list[ProjectedEvent]) -> None:
    pairs = find_conflict_pairs(events)
    if not pairs:
        print("No conflicts found.")
        return

    print(f"Conflicts found: {len(pairs)}")
    for a, b in sorted(pairs, key=lambda p: (p[0].start, p[0].course_code)):
        print(f"- {a.day} {_event_line(a)}  <->  {_event_line(b)}")


def _cmd_week(args: argparse.Namespace, catalog: Catalog, enrollment: Enrollment) -> int:
    term, week = _resolve_week(args)
    events = project_viewing(catalog, enrollment, term, week)
    mark_conflicts(events)
    _print_week(term, week, events)
    return 0


def _cmd_conflicts(args: argparse.Namespace, catalog: Catalog, enrollment: Enrollment) -> int:
    term, week = _resolve_week(args)
    events = project_viewing(catalog, enrollment, term, week)
    _print_conflicts(events)
    return 0


def _cmd_enrollment(args: argparse.Namespace, catalog: Catalog, enrollment: Enrollment) -> int:
    if not enrollment:
        print("Not enrolled in any course.")
        return 0

    for code in sorted(enrollment):
        course = catalog.course_by_code.get(code)
        name = course.name if course else "(not found in courses.json)"
        groups = ", ".join(f"{t} {g}" for t, g in enrollment[code].items())
        print(f"{code} | {name} | {groups}")
    return 0


def _parse_stage(text: str) -> tuple[str, str, int]:
    """
    'EC101:CLA:4' -> ('EC101', 'CLA', 4)
    """
    parts = [p.strip() for p in text.split(":")]
    if len(parts) != 3 or not parts[0] or not parts[1] or not parts[2].isdigit():
        raise argparse.ArgumentTypeError(f"expected COURSE:TYPE:GROUP, got {text!r}")
    return parts[0].upper(), parts[1].upper(), int(parts[2])


def _cmd_plan(args: argparse.Namespace, catalog: Catalog, enrollment: Enrollment) -> int:
    term, week = _resolve_week(args)

    state = PlanningState(catalog, enrollment)
    courses = [c for c in catalog.courses_for_term(term) if c.code in enrollment]
    state.enter_planning(courses, storage.load_planning_preferences(args.state_dir))

    for code in args.all or []:
        state.set_detail_mode(code.upper(), DETAIL_ALL)
    for code in args.hide or []:
        if code.upper() in state.visible_courses:
            state.toggle_visibility(code.upper())

    for code, session_type, group in args.stage or []:
        enrolled = enrollment.get(code, {}).get(session_type)
        if enrolled is None:
            print(f"Not enrolled in {code} {session_type}.")
            return 1
        if is_lecture(session_type):
            print(f"Lectures cannot be switched ({code} {session_type}).")
            return 1
        if group not in catalog.group_numbers(code, session_type):
            print(f"No group {group} for {code} {session_type}.")
            return 1
        state.select_group(code, session_type, enrolled, group)

    events = state.events_for_week(term, week)
    _print_week(term, week, events)

    if state.staged:
        print("\nStaged changes:")
        for change in state.staged.values():
            print(f"- {change.course}: {change.label()}")
    print()
    _print_conflicts(events)

    if args.apply:
        def commit(changes: dict[GroupKey, StagedChange]) -> None:
            overrides = commit_staged_changes(
                enrollment, changes.values(), storage.load_enrollment_overrides(args.state_dir)
            )
            storage.save_enrollment_overrides(overrides, args.state_dir)

        result = state.apply_changes(commit, confirm=lambda _count: bool(args.yes))
        print(f"\n{result.message}")
        if result.status == APPLY_CANCELLED:
            print("Re-run with --yes to apply despite conflicts.")
            state.exit_planning("cancel")
            return 1

    state.exit_planning("cancel")
    return 0


def _cmd_export(args: argparse.Namespace, catalog: Catalog, enrollment: Enrollment) -> int:
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    if args.week is None:
        term = (args.term or current_term_and_week()[0]).strip().upper()
        weeks = range(1, get_term(term).total_weeks + 1)
    else:
        term, week = _resolve_week(args)
        weeks = range(week, week + 1)

    events: list[ProjectedEvent] = []
    for w in weeks:
        events.extend(project_viewing(catalog, enrollment, term, w))

    if not events:
        print("No sessions to export.")
        return 0

    n = export_events_to_ics(events, out_path)
    print(f"Exported {n} events to: {out_path}")
    return 0


def _cmd_reset(args: argparse.Namespace) -> int:
    storage.clear_all(args.state_dir)
    print("Stored colours, mode, planning preferences and enrollment overrides cleared.")
    return 0


def _add_week_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--term", type=str, help="Term code (AT, WT, ST); default: current term")
    p.add_argument("--week", type=int, help="Week number; default: current week")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="classswitcher", description="ClassSwitcher CLI")
    parser.add_argument("--data", type=str, help="Data directory or http(s) base URL")
    parser.add_argument("--state-dir", type=Path, help="Directory for stored user state")
    sub = parser.add_subparsers(dest="command", required=True)

    p_week = sub.add_parser("week", help="Show the timetable of a week")
    _add_week_args(p_week)

    p_conf = sub.add_parser("conflicts", help="Show clashes in a week's timetable")
    _add_week_args(p_conf)

    sub.add_parser("enrollment", help="Show enrolled groups")

    p_plan = sub.add_parser("plan", help="Preview switching groups for a week")
    _add_week_args(p_plan)
    p_plan.add_argument("--stage", type=_parse_stage, action="append", metavar="COURSE:TYPE:GROUP",
                        help="Stage a group switch (repeatable)")
    p_plan.add_argument("--all", action="append", metavar="COURSE", help="Show all groups of a course")
    p_plan.add_argument("--hide", action="append", metavar="COURSE", help="Hide a course")
    p_plan.add_argument("--apply", action="store_true", help="Commit the staged changes")
    p_plan.add_argument("--yes", action="store_true", help="Apply even if there are conflicts")

    p_export = sub.add_parser("export", help="Export the timetable to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")
    _add_week_args(p_export)

    sub.add_parser("reset", help="Clear all stored user state")
    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "reset":
        raise SystemExit(_cmd_reset(args))

    try:
        catalog, enrollment = _load_context(args)
    except DataLoadError as e:
        print(f"Failed to load data: {e}")
        raise SystemExit(1)

    handlers = {
        "week": _cmd_week,
        "conflicts": _cmd_conflicts,
        "enrollment": _cmd_enrollment,
        "plan": _cmd_plan,
        "export": _cmd_export,
    }

    if args.command in handlers:
        try:
            raise SystemExit(handlers[args.command](args, catalog, enrollment))
        except (UnknownTermError, ValueError) as e:
            print(str(e))
            raise SystemExit(1)

    if args.command == "interactive":
        from classswitcher.interactive import run_interactive

        run_interactive(catalog, enrollment, state_dir=args.state_dir)
        raise SystemExit(0)

    raise SystemExit(2)
