"""
iCalendar (.ics) export.

Projected events are written as plain local-time VEVENTs so the timetable can
be imported into Google Calendar, Outlook or Apple Calendar.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from classswitcher.config import SESSION_TYPE_LABELS
from classswitcher.model import LECTURE, ProjectedEvent


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M00")


def _summary(ev: ProjectedEvent) -> str:
    label = SESSION_TYPE_LABELS.get(ev.session_type, ev.session_type)
    if ev.display_state == LECTURE:
        return f"{ev.course_code} {label}"
    return f"{ev.course_code} {label} G{ev.group_number}"


def export_events_to_ics(events: Iterable[ProjectedEvent], out_path: str | Path) -> int:
    """
    Export events to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//ClassSwitcher//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for ev in events:
        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(f'{ev.term}-{ev.id}')}@classswitcher")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{_dt_local(ev.start)}")
        lines.append(f"DTEND:{_dt_local(ev.end)}")
        lines.append(f"SUMMARY:{_ics_escape(_summary(ev))}")
        if ev.location:
            lines.append(f"LOCATION:{_ics_escape(ev.location)}")
        description = "\n".join(x for x in (ev.course_name, ev.instructor) if x)
        if description:
            lines.append(f"DESCRIPTION:{_ics_escape(description)}")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
