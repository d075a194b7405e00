"""
Persistent storage for user state.

One small JSON file per storage key inside the state directory
(default: ~/.classswitcher, see config.default_state_dir):

    course_colors.json          {course: colour index}
    mode.json                   "viewing" | "planning"
    planning_state.json         {"visibleCourses": [...], "detailModeByCourse": {...}}
    enrollment_overrides.json   {course: {type: group}}

Staged changes are never stored here: they only live during a planning
session.

Reference data (courses, sessions, baseline enrollment) is never written here;
only the user's own choices are, so it survives reloading the data.

Missing or corrupted files yield the default value and never crash the
application.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from classswitcher.config import default_state_dir
from classswitcher.logger import log
from classswitcher.model import PLANNING, VIEWING, PlanningPreferences


STORAGE_KEYS = {
    "COURSE_COLORS": "course_colors",
    "MODE": "mode",
    "PLANNING_STATE": "planning_state",
    "ENROLLMENT_OVERRIDES": "enrollment_overrides",
}


def _key_path(key: str, state_dir: str | Path | None) -> Path:
    base = Path(state_dir) if state_dir is not None else default_state_dir()
    return base / f"{key}.json"


def _save(key: str, data: Any, state_dir: str | Path | None = None) -> None:
    path = _key_path(key, state_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def _load(key: str, default: Any = None, state_dir: str | Path | None = None) -> Any:
    path = _key_path(key, state_dir)
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        log.warning("Ignoring unreadable state file %s: %s", path, e)
        return default


def _remove(key: str, state_dir: str | Path | None = None) -> None:
    path = _key_path(key, state_dir)
    if path.exists():
        path.unlink()


# ---------------------------------------------------------------------------
# Course colours
# ---------------------------------------------------------------------------


def save_course_colors(colors: dict[str, int], state_dir: str | Path | None = None) -> None:
    _save(STORAGE_KEYS["COURSE_COLORS"], dict(sorted(colors.items())), state_dir)


def load_course_colors(state_dir: str | Path | None = None) -> dict[str, int]:
    data = _load(STORAGE_KEYS["COURSE_COLORS"], {}, state_dir)
    if not isinstance(data, dict):
        return {}
    out: dict[str, int] = {}
    for code, index in data.items():
        if isinstance(index, int):
            out[str(code)] = index
    return out


# ---------------------------------------------------------------------------
# App mode
# ---------------------------------------------------------------------------


def save_mode(mode: str, state_dir: str | Path | None = None) -> None:
    _save(STORAGE_KEYS["MODE"], mode, state_dir)


def load_mode(state_dir: str | Path | None = None) -> str:
    mode = _load(STORAGE_KEYS["MODE"], VIEWING, state_dir)
    return mode if mode in (VIEWING, PLANNING) else VIEWING


# ---------------------------------------------------------------------------
# Planning preferences (never staged changes)
# ---------------------------------------------------------------------------


def save_planning_preferences(prefs: PlanningPreferences, state_dir: str | Path | None = None) -> None:
    _save(STORAGE_KEYS["PLANNING_STATE"], prefs.to_dict(), state_dir)


def load_planning_preferences(state_dir: str | Path | None = None) -> Optional[PlanningPreferences]:
    data = _load(STORAGE_KEYS["PLANNING_STATE"], None, state_dir)
    if not isinstance(data, dict):
        return None
    return PlanningPreferences.from_dict(data)


def clear_planning_preferences(state_dir: str | Path | None = None) -> None:
    _remove(STORAGE_KEYS["PLANNING_STATE"], state_dir)


# ---------------------------------------------------------------------------
# Enrollment overrides
# ---------------------------------------------------------------------------


def save_enrollment_overrides(overrides: dict[str, dict[str, int]], state_dir: str | Path | None = None) -> None:
    _save(STORAGE_KEYS["ENROLLMENT_OVERRIDES"], overrides, state_dir)


def load_enrollment_overrides(state_dir: str | Path | None = None) -> dict[str, dict[str, int]]:
    data = _load(STORAGE_KEYS["ENROLLMENT_OVERRIDES"], {}, state_dir)
    if not isinstance(data, dict):
        return {}

    out: dict[str, dict[str, int]] = {}
    for code, by_type in data.items():
        if not isinstance(by_type, dict):
            continue
        groups = {str(t): g for t, g in by_type.items() if isinstance(g, int)}
        if groups:
            out[str(code)] = groups
    return out


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def clear_all(state_dir: str | Path | None = None) -> None:
    for key in STORAGE_KEYS.values():
        _remove(key, state_dir)
    log.info("All stored state cleared")


def storage_info(state_dir: str | Path | None = None) -> dict[str, dict[str, Any]]:
    """
    Report, per storage key, whether a value exists and its size in bytes.
    """
    info: dict[str, dict[str, Any]] = {}
    for name, key in STORAGE_KEYS.items():
        path = _key_path(key, state_dir)
        exists = path.exists()
        info[name] = {"exists": exists, "size": path.stat().st_size if exists else 0}
    return info
