"""CRUD operations for classes, teachers, subjects and weekly schedules.

All DB access is centralized here so the schedule service and the pages stay
clean.

We use simple `sqlite3` + parameterized queries.

"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union


logger = logging.getLogger(__name__)


# -----------------
# Helper utilities
# -----------------


def _rows(conn: sqlite3.Connection, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
    cur = conn.execute(query, params)
    return [dict(r) for r in cur.fetchall()]


def _row(conn: sqlite3.Connection, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
    cur = conn.execute(query, params)
    r = cur.fetchone()
    return dict(r) if r is not None else None


def _loads(text: Optional[str], *, what: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Stored %s is not valid JSON; ignoring it", what)
        return None


# -------
# Classes
# -------


def list_classes(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    return _rows(conn, "SELECT id, name, grade, section FROM classes ORDER BY id")


def get_class(conn: sqlite3.Connection, class_id: Any) -> Optional[Dict[str, Any]]:
    return _row(conn, "SELECT id, name, grade, section FROM classes WHERE id=? LIMIT 1", (class_id,))


def upsert_class(
    conn: sqlite3.Connection,
    *,
    class_id: int,
    name: Optional[str],
    grade: Optional[str] = None,
    section: Optional[str] = None,
) -> None:
    conn.execute(
        """
        INSERT INTO classes (id, name, grade, section)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET name=excluded.name, grade=excluded.grade, section=excluded.section
        """,
        (class_id, name, grade, section),
    )


def delete_class(conn: sqlite3.Connection, class_id: Any) -> None:
    conn.execute("DELETE FROM classes WHERE id=?", (class_id,))


# --------
# Teachers
# --------


def list_teachers_with_availability(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    """Teachers joined with their profile.

    `availability_json` is None for teachers without a profile row.
    """

    return _rows(
        conn,
        """
        SELECT t.id, t.full_name, tp.availability_json
        FROM teachers t
        LEFT JOIN teacher_profiles tp ON tp.user_id = t.id
        ORDER BY t.id
        """,
    )


def upsert_teacher(
    conn: sqlite3.Connection,
    *,
    teacher_id: int,
    full_name: str,
    availability: Union[None, str, Mapping[str, Any]] = None,
) -> None:
    """Insert/update a teacher; `availability=None` removes the profile row."""

    conn.execute(
        """
        INSERT INTO teachers (id, full_name) VALUES (?, ?)
        ON CONFLICT(id) DO UPDATE SET full_name=excluded.full_name
        """,
        (teacher_id, full_name),
    )

    if availability is None:
        conn.execute("DELETE FROM teacher_profiles WHERE user_id=?", (teacher_id,))
        return

    raw = availability if isinstance(availability, str) else json.dumps(dict(availability))
    conn.execute(
        """
        INSERT INTO teacher_profiles (user_id, availability_json) VALUES (?, ?)
        ON CONFLICT(user_id) DO UPDATE SET availability_json=excluded.availability_json
        """,
        (teacher_id, raw),
    )


def delete_teacher(conn: sqlite3.Connection, teacher_id: int) -> None:
    conn.execute("DELETE FROM teachers WHERE id=?", (teacher_id,))


# --------
# Subjects
# --------


def list_class_subject_rows(conn: sqlite3.Connection, class_id: Any) -> List[Dict[str, Any]]:
    """Raw subject rows for a class (columns are interpreted by the demand aggregator)."""

    return _rows(conn, "SELECT * FROM subjects WHERE class_id=? ORDER BY id", (class_id,))


def add_subject(
    conn: sqlite3.Connection,
    *,
    class_id: int,
    name: str,
    hours: Optional[int] = 1,
    teacher_id: Optional[int] = None,
    teacher_name: Optional[str] = None,
) -> int:
    cur = conn.execute(
        "INSERT INTO subjects (class_id, name, hours, teacher_id, teacher_name) VALUES (?, ?, ?, ?, ?)",
        (class_id, name, hours, teacher_id, teacher_name),
    )
    return int(cur.lastrowid)


def delete_subject(conn: sqlite3.Connection, subject_id: int) -> None:
    conn.execute("DELETE FROM subjects WHERE id=?", (subject_id,))


# ----------------
# Class schedules
# ----------------


def get_class_schedule(conn: sqlite3.Connection, class_id: Any) -> Optional[Any]:
    r = _row(conn, "SELECT schedule_json FROM class_schedules WHERE class_id=?", (str(class_id),))
    if r is None:
        return None
    return _loads(r.get("schedule_json"), what=f"schedule for class {class_id}")


def upsert_class_schedule(conn: sqlite3.Connection, class_id: Any, schedule: Any) -> None:
    """Create-or-replace the schedule of a class (last write wins)."""

    conn.execute(
        """
        INSERT INTO class_schedules (class_id, schedule_json, updated_at)
        VALUES (?, ?, datetime('now'))
        ON CONFLICT(class_id) DO UPDATE SET
            schedule_json=excluded.schedule_json,
            updated_at=excluded.updated_at
        """,
        (str(class_id), json.dumps(schedule if schedule is not None else {}, ensure_ascii=False)),
    )


def list_class_schedules_except(conn: sqlite3.Connection, class_id: Any) -> List[Any]:
    rows = _rows(conn, "SELECT class_id, schedule_json FROM class_schedules WHERE class_id <> ?", (str(class_id),))
    out: List[Any] = []
    for r in rows:
        sch = _loads(r.get("schedule_json"), what=f"schedule for class {r.get('class_id')}")
        if sch is not None:
            out.append(sch)
    return out


def delete_class_schedule(conn: sqlite3.Connection, class_id: Any) -> None:
    conn.execute("DELETE FROM class_schedules WHERE class_id=?", (str(class_id),))


# --------
# Settings
# --------


def get_setting(conn: sqlite3.Connection, key: str, default: Optional[str] = None) -> Optional[str]:
    r = _row(conn, "SELECT value FROM settings WHERE key=?", (key,))
    if r is None or r.get("value") is None:
        return default
    return str(r["value"])


def set_setting(conn: sqlite3.Connection, key: str, value: Optional[str]) -> None:
    conn.execute(
        "INSERT INTO settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
        (key, value),
    )


def list_settings(conn: sqlite3.Connection) -> Dict[str, Optional[str]]:
    return {r["key"]: r["value"] for r in _rows(conn, "SELECT key, value FROM settings ORDER BY key")}


# ---------
# Demo data
# ---------


def load_school_from_json(conn: sqlite3.Connection, path: Union[str, Path]) -> Dict[str, int]:
    """Load classes/teachers/subjects/settings from a JSON file.

    Expected shape::

        {
          "settings": {"school_name": "..."},
          "classes": [{"id": 1, "name": "Grade 5 A"}],
          "teachers": [{"id": 10, "full_name": "...", "availability": {...} | null}],
          "subjects": [{"class_id": 1, "name": "Math", "hours": 6, "teacher_id": 10}]
        }

    A teacher entry without an "availability" key gets no profile row.
    """

    data = json.loads(Path(path).read_text(encoding="utf-8"))

    for key, value in (data.get("settings") or {}).items():
        set_setting(conn, str(key), None if value is None else str(value))

    for c in data.get("classes") or []:
        upsert_class(conn, class_id=int(c["id"]), name=c.get("name"), grade=c.get("grade"), section=c.get("section"))

    for t in data.get("teachers") or []:
        upsert_teacher(conn, teacher_id=int(t["id"]), full_name=str(t["full_name"]), availability=t.get("availability"))

    for s in data.get("subjects") or []:
        add_subject(
            conn,
            class_id=int(s["class_id"]),
            name=str(s["name"]),
            hours=s.get("hours"),
            teacher_id=s.get("teacher_id"),
            teacher_name=s.get("teacher_name"),
        )

    return {
        "classes": len(data.get("classes") or []),
        "teachers": len(data.get("teachers") or []),
        "subjects": len(data.get("subjects") or []),
    }
