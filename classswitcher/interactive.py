from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from classswitcher import storage
from classswitcher.catalog import Catalog, assign_course_colors, commit_staged_changes
from classswitcher.config import SESSION_TYPE_LABELS, TERMS, WEEKDAYS, is_lecture
from classswitcher.export_ics import export_events_to_ics
from classswitcher.model import (
    ALTERNATIVE,
    DETAIL_ALL,
    DETAIL_MY,
    EXIT_CANCEL,
    EXIT_SAVE,
    PLANNING,
    SELECTED,
    VIEWING,
    Course,
    Enrollment,
    GroupKey,
    ProjectedEvent,
    StagedChange,
)
from classswitcher.planning import CLICK_DESELECTED, CLICK_DETAILS, CLICK_SELECTED, PlanningState
from classswitcher.projector import project_viewing
from classswitcher.terms import current_term_and_week, format_date_range, week_date_range


console = Console()

PALETTE = [
    "cyan", "magenta", "green", "yellow", "blue", "bright_red",
    "bright_cyan", "bright_magenta", "bright_green", "bright_blue",
]


@dataclass
class AppContext:
    catalog: Catalog
    enrollment: Enrollment
    state: PlanningState
    term: str
    week: int
    state_dir: Optional[Path] = None
    colors: dict[str, int] = field(default_factory=dict)


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    # prompts contain literal brackets like "[blank = back]"
    return console.input(escape(msg))


def _course_style(s: AppContext, code: str) -> str:
    return PALETTE[s.colors.get(code, 0) % len(PALETTE)]


def _enrolled_courses(s: AppContext) -> list[Course]:
    return [c for c in s.catalog.courses_for_term(s.term) if c.code in s.enrollment]


def _save_preferences(s: AppContext) -> None:
    storage.save_planning_preferences(s.state.preferences(), s.state_dir)


def _commit(s: AppContext, changes: dict[GroupKey, StagedChange]) -> None:
    overrides = commit_staged_changes(s.enrollment, changes.values(), storage.load_enrollment_overrides(s.state_dir))
    storage.save_enrollment_overrides(overrides, s.state_dir)


def run_interactive(catalog: Catalog, enrollment: Enrollment, state_dir: Optional[Path] = None) -> None:
    """
    Interactive menu loop: week timetable, planning mode and export.
    """
    term, week = current_term_and_week()
    s = AppContext(catalog, enrollment, PlanningState(catalog, enrollment), term, week, state_dir)

    s.colors = assign_course_colors(catalog.courses, storage.load_course_colors(state_dir))
    storage.save_course_colors(s.colors, state_dir)

    if storage.load_mode(state_dir) == PLANNING:
        _enter_planning(s)

    while True:
        events = s.state.events_for_week(s.term, s.week)
        _print_header(s)
        _render_week(s, events)
        if s.state.is_planning():
            _render_planning_summary(s)

        choice = _prompt(_menu_text(s)).strip().lower()

        if choice == "0":
            _println("Bye.")
            return

        if choice == "n":
            _move_week(s, 1)
        elif choice == "p":
            _move_week(s, -1)
        elif choice == "g":
            _flow_goto(s)
        elif choice == "s":
            _flow_session(s, events)
        elif choice == "c":
            _flow_conflicts(s, events)
        elif choice == "e":
            _flow_export(s)
        elif choice == "m" and not s.state.is_planning():
            _enter_planning(s)
        elif choice == "v" and s.state.is_planning():
            _flow_toggle_visibility(s)
        elif choice == "d" and s.state.is_planning():
            _flow_toggle_detail(s)
        elif choice == "a" and s.state.is_planning():
            _flow_apply(s)
        elif choice == "w" and s.state.is_planning():
            _exit_planning(s, EXIT_SAVE)
        elif choice == "x" and s.state.is_planning():
            _exit_planning(s, EXIT_CANCEL)
        else:
            _println("Invalid choice.")


def _menu_text(s: AppContext) -> str:
    lines = [
        "",
        "[n] Next week   [p] Previous week   [g] Go to term/week",
        "[s] Session (details / pick)   [c] Conflicts   [e] Export .ics",
    ]
    if s.state.is_planning():
        lines.append("[v] Show/hide course   [d] My/All sessions   [a] Apply changes")
        lines.append("[w] Save & leave planning   [x] Cancel planning")
    else:
        lines.append("[m] Planning mode")
    lines.append("[0] Exit")
    return "\n".join(lines) + "\nSelect: "


def _print_header(s: AppContext) -> None:
    start, end = week_date_range(s.term, s.week)
    mode = "[bold yellow]PLANNING[/]" if s.state.is_planning() else "viewing"
    _println(f"\n=== ClassSwitcher ({mode}) ===")
    _println(f"{TERMS[s.term].name} - Week {s.week} ({format_date_range(start, end)})")


def _event_cell(s: AppContext, n: int, ev: ProjectedEvent) -> str:
    label = "Lec" if is_lecture(ev.session_type) else f"{ev.session_type}-G{ev.group_number}"
    text = f"{n}. {ev.start:%H:%M}-{ev.end:%H:%M} {ev.course_code} {label}"
    style = _course_style(s, ev.course_code)
    if ev.display_state == ALTERNATIVE:
        style = f"dim {style}"
    elif ev.display_state == SELECTED:
        style = f"bold {style}"
        text += " *"
    cell = f"[{style}]{text}[/]"
    if ev.conflict:
        cell += " [bold red]![/]"
    return cell


def _numbered(events: list[ProjectedEvent]) -> list[ProjectedEvent]:
    # Stable numbering: by day, then start time
    order = {d: i for i, d in enumerate(WEEKDAYS)}
    return sorted(events, key=lambda e: (order.get(e.day, len(order)), e.start, e.course_code, e.group_number))


def _render_week(s: AppContext, events: list[ProjectedEvent]) -> None:
    if not events:
        _println("No sessions this week.")
        return

    buckets: dict[str, list[str]] = defaultdict(list)
    for n, ev in enumerate(_numbered(events), start=1):
        buckets[ev.day].append(_event_cell(s, n, ev))

    table = Table(box=box.SIMPLE)
    for day in WEEKDAYS:
        table.add_column(day)
    max_len = max((len(buckets[d]) for d in WEEKDAYS), default=0)
    for r in range(max_len):
        table.add_row(*[buckets[d][r] if r < len(buckets[d]) else "" for d in WEEKDAYS])
    console.print(table)

    if s.state.conflict_pairs:
        _println(f"[bold red]{s.state.conflict_pairs} conflict(s) this week[/]")


def _render_planning_summary(s: AppContext) -> None:
    table = Table(title="Courses", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Shown")
    table.add_column("Course")
    table.add_column("Sessions")
    table.add_column("Changes")
    table.add_column("Groups", justify="right")

    for i, course in enumerate(_enrolled_courses(s), start=1):
        shown = "✓" if course.code in s.state.visible_courses else ""
        mode = s.state.detail_modes.get(course.code, DETAIL_MY)
        changes = ", ".join(c.label() for c in s.state.changes_for_course(course.code))
        lecture_types = [t for t in s.enrollment.get(course.code, {}) if is_lecture(t)]
        groups = s.catalog.available_group_count(course.code, exclude_types=lecture_types)
        style = _course_style(s, course.code)
        table.add_row(
            str(i), shown, f"[{style}]{course.code}[/] {escape(course.name)}",
            "All" if mode == DETAIL_ALL else "My", changes, str(groups),
        )
    console.print(table)


def _move_week(s: AppContext, delta: int) -> None:
    total = TERMS[s.term].total_weeks
    week = s.week + delta
    if 1 <= week <= total:
        s.week = week
    else:
        _println(f"{TERMS[s.term].name} has weeks 1-{total}.")


def _flow_goto(s: AppContext) -> None:
    codes = list(TERMS)
    term = _prompt(f"Term ({'/'.join(codes)}) [blank = {s.term}]: ").strip().upper() or s.term
    if term not in TERMS:
        _println("Unknown term.")
        return
    total = TERMS[term].total_weeks
    pick = _prompt(f"Week (1-{total}) [blank = 1]: ").strip()
    if pick and not (pick.isdigit() and 1 <= int(pick) <= total):
        _println("Out of range.")
        return

    if term != s.term and s.state.is_planning():
        # course list differs per term: restart planning with the new term's courses
        s.term = term
        s.week = int(pick) if pick else 1
        s.state.exit_planning(EXIT_CANCEL)
        _enter_planning(s)
        return

    s.term = term
    s.week = int(pick) if pick else 1


def _pick_event(events: list[ProjectedEvent]) -> Optional[ProjectedEvent]:
    ordered = _numbered(events)
    if not ordered:
        _println("No sessions this week.")
        return None
    pick = _prompt("Session number [blank = back]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(ordered)):
        _println("Out of range.")
        return None
    return ordered[int(pick) - 1]


def _show_details(ev: ProjectedEvent) -> None:
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Course", escape(f"{ev.course_code} {ev.course_name}"))
    table.add_row("Session", f"{SESSION_TYPE_LABELS.get(ev.session_type, ev.session_type)} (group {ev.group_number})")
    table.add_row("When", f"{ev.start:%a %d %b %Y} {ev.start:%H:%M}-{ev.end:%H:%M}")
    table.add_row("Where", escape(ev.location or "-"))
    table.add_row("Instructor", escape(ev.instructor or "-"))
    table.add_row("Status", ev.display_state + (" (conflict)" if ev.conflict else ""))
    console.print(table)


def _flow_session(s: AppContext, events: list[ProjectedEvent]) -> None:
    ev = _pick_event(events)
    if ev is None:
        return

    if not s.state.is_planning():
        _show_details(ev)
        return

    outcome = s.state.handle_session_click(ev)
    if outcome == CLICK_DETAILS:
        _show_details(ev)
    elif outcome == CLICK_SELECTED:
        _println(f"Picked {ev.course_code} {ev.session_type} group {ev.group_number}.")
    elif outcome == CLICK_DESELECTED:
        _println(f"Back to enrolled {ev.course_code} {ev.session_type} group.")


def _flow_conflicts(s: AppContext, events: list[ProjectedEvent]) -> None:
    clashing = [e for e in _numbered(events) if e.conflict]
    if not clashing:
        _println("No conflicts found.")
        return

    _println(f"Conflicts found: {s.state.conflict_pairs}")
    for ev in clashing:
        _println(f"- {ev.day} {ev.start:%H:%M}-{ev.end:%H:%M} {ev.course_code} {ev.session_type} G{ev.group_number}")


def _pick_course(s: AppContext) -> Optional[Course]:
    courses = _enrolled_courses(s)
    pick = _prompt("Course number (see Courses table) [blank = back]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(courses)):
        _println("Out of range.")
        return None
    return courses[int(pick) - 1]


def _flow_toggle_visibility(s: AppContext) -> None:
    course = _pick_course(s)
    if course is None:
        return
    shown = s.state.toggle_visibility(course.code)
    _save_preferences(s)
    _println(f"{course.code} {'shown' if shown else 'hidden'}.")


def _flow_toggle_detail(s: AppContext) -> None:
    course = _pick_course(s)
    if course is None:
        return
    mode = DETAIL_MY if s.state.detail_modes.get(course.code, DETAIL_MY) == DETAIL_ALL else DETAIL_ALL
    s.state.set_detail_mode(course.code, mode)
    _save_preferences(s)
    _println(f"{course.code}: {'all sessions' if mode == DETAIL_ALL else 'my sessions'}.")


def _confirm_conflicts(count: int) -> bool:
    answer = _prompt(f"You have {count} scheduling conflict(s). Apply anyway? (y/N): ").strip().lower()
    return answer == "y"


def _flow_apply(s: AppContext) -> None:
    result = s.state.apply_changes(lambda changes: _commit(s, changes), confirm=_confirm_conflicts)
    if result.success:
        _save_preferences(s)
        _println(f"[green]{result.message}[/]")
    else:
        _println(result.message)


def _enter_planning(s: AppContext) -> None:
    s.state.enter_planning(_enrolled_courses(s), storage.load_planning_preferences(s.state_dir))
    storage.save_mode(PLANNING, s.state_dir)


def _exit_planning(s: AppContext, action: str) -> None:
    # Preferences are kept for next time, whatever happens to the changes
    _save_preferences(s)
    changes = s.state.exit_planning(action)
    if changes:
        _commit(s, changes)
        _println(f"[green]Saved {len(changes)} change(s).[/]")
    storage.save_mode(VIEWING, s.state_dir)


def _flow_export(s: AppContext) -> None:
    """
    Export the committed timetable (never staged picks or alternatives).
    """
    whole = _prompt(f"Export the whole {TERMS[s.term].name}? [Y/n]: ").strip().lower() != "n"
    weeks = range(1, TERMS[s.term].total_weeks + 1) if whole else range(s.week, s.week + 1)

    events: list[ProjectedEvent] = []
    for w in weeks:
        events.extend(project_viewing(s.catalog, s.enrollment, s.term, w))
    if not events:
        _println("No sessions to export.")
        return

    downloads = Path.home() / "Downloads"
    default_name = f"classswitcher-{s.term}.ics" if whole else f"classswitcher-{s.term}-week{s.week}.ics"
    out_in = _prompt(f"File name [{default_name}]: ").strip()
    out_path = downloads / (out_in or default_name)
    if out_path.suffix.lower() != ".ics":
        out_path = out_path.with_suffix(".ics")

    n = export_events_to_ics(events, out_path)
    _println(f"\nExported {n} events.")
    _println(f"Saved to: {out_path.resolve()}")
