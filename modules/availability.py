"""Teacher availability translation.

Teachers declare free time as clock windows per weekday, e.g.::

    {"mon": {"enabled": true, "slots": [{"start": "08:00", "end": "11:30"}]}}

The scheduler works on periods, so each teacher's windows are converted into a
boolean grid (working day -> 7 flags). A period is available only if a single
enabled window fully contains it.

Absence is modelled explicitly:
- no profile row at all          -> grid is None (UNCONSTRAINED, always available)
- profile with nothing usable    -> all-False grid (NO_AVAILABLE_SLOTS)

The two cases must not be collapsed; they behave in opposite ways.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .time_grid import PERIODS_PER_DAY, WORKING_DAYS, PeriodSpan, hm_to_minutes


logger = logging.getLogger(__name__)

DayGrid = Dict[str, Tuple[bool, ...]]

_DAY_PREFIXES = (
    ("mon", "Monday"),
    ("tue", "Tuesday"),
    ("wed", "Wednesday"),
    ("thu", "Thursday"),
    ("fri", "Friday"),
    ("sat", "Saturday"),
    ("sun", "Sunday"),
)


class AvailabilityStatus(enum.Enum):
    UNCONSTRAINED = "unconstrained"
    NO_AVAILABLE_SLOTS = "no_available_slots"
    PARTIAL = "partial"
    FULL = "full"


def normalize_day_key(key: Any) -> Optional[str]:
    """Map "mon", "MONDAY", "Mon." ... to the full English day name."""

    s = str(key or "").strip().lower()
    for prefix, name in _DAY_PREFIXES:
        if s.startswith(prefix):
            return name
    return None


def normalize_name(name: Any) -> str:
    return str(name or "").strip().lower()


def teacher_key_for_id(teacher_id: Any) -> str:
    return f"id:{teacher_id}"


def teacher_key_for_name(name: Any) -> str:
    return f"name:{normalize_name(name)}"


def empty_grid(value: bool = False) -> DayGrid:
    return {d: tuple([value] * PERIODS_PER_DAY) for d in WORKING_DAYS}


def _load_raw(raw: Any) -> Dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw or "{}")
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed availability JSON: %r", raw[:80])
            return {}
    if not isinstance(raw, Mapping):
        return {}
    return dict(raw)


def availability_to_periods(raw: Any, spans: Sequence[PeriodSpan]) -> DayGrid:
    """Convert raw weekly windows into a per-day boolean grid aligned to `spans`.

    Days outside the working set (Friday, Sunday) are recognized but dropped.
    Windows with missing/unparseable times or start >= end are ignored.
    """

    out: Dict[str, List[bool]] = {d: [False] * len(spans) for d in WORKING_DAYS}

    for key, day in _load_raw(raw).items():
        norm = normalize_day_key(key)
        if norm is None or norm not in out:
            continue
        if not isinstance(day, Mapping) or not day.get("enabled"):
            continue
        for window in day.get("slots") or []:
            if not isinstance(window, Mapping):
                continue
            ws = hm_to_minutes(window.get("start"))
            we = hm_to_minutes(window.get("end"))
            if ws is None or we is None or ws >= we:
                continue
            for i, p in enumerate(spans):
                if p.start_minutes >= ws and p.end_minutes <= we:
                    out[norm][i] = True

    return {d: tuple(flags) for d, flags in out.items()}


@dataclass(frozen=True)
class TeacherAvailability:
    teacher_id: Any
    name: str
    # None => no profile => treated as always available
    grid: Optional[DayGrid] = None

    @property
    def key(self) -> str:
        return teacher_key_for_id(self.teacher_id)

    @property
    def status(self) -> AvailabilityStatus:
        if self.grid is None:
            return AvailabilityStatus.UNCONSTRAINED
        flags = [f for d in WORKING_DAYS for f in self.grid.get(d, ())]
        if not any(flags):
            return AvailabilityStatus.NO_AVAILABLE_SLOTS
        if len(flags) == len(WORKING_DAYS) * PERIODS_PER_DAY and all(flags):
            return AvailabilityStatus.FULL
        return AvailabilityStatus.PARTIAL

    def is_available(self, day: str, period_idx: int) -> bool:
        if self.grid is None:
            return True
        row = self.grid.get(day)
        if row is None:
            return True
        return bool(row[period_idx]) if 0 <= period_idx < len(row) else False

    def available_count(self, day: str) -> int:
        if self.grid is None:
            return PERIODS_PER_DAY
        return sum(1 for f in self.grid.get(day, ()) if f)

    def masked(self, busy: Mapping[str, Sequence[bool]]) -> "TeacherAvailability":
        """Return a copy with `busy` periods removed from the grid."""

        base = self.grid if self.grid is not None else empty_grid(True)
        grid = {
            d: tuple(bool(f) and not bool((busy.get(d) or [False] * PERIODS_PER_DAY)[i]) for i, f in enumerate(base[d]))
            for d in WORKING_DAYS
        }
        return TeacherAvailability(teacher_id=self.teacher_id, name=self.name, grid=grid)


@dataclass
class TeacherIndex:
    by_id: Dict[str, TeacherAvailability] = field(default_factory=dict)
    by_name: Dict[str, TeacherAvailability] = field(default_factory=dict)

    def get_by_id(self, teacher_id: Any) -> Optional[TeacherAvailability]:
        if teacher_id is None:
            return None
        return self.by_id.get(teacher_key_for_id(teacher_id))

    def get_by_name(self, name: Any) -> Optional[TeacherAvailability]:
        if not normalize_name(name):
            return None
        return self.by_name.get(teacher_key_for_name(name))

    def resolve(self, teacher_key: Optional[str], teacher_name: Optional[str]) -> Optional[TeacherAvailability]:
        """Find the entry for a resolved teacher; None means "no profile"."""

        if teacher_key and teacher_key in self.by_id:
            return self.by_id[teacher_key]
        return self.get_by_name(teacher_name)

    def teachers(self) -> List[TeacherAvailability]:
        """All known teachers ordered by id (stable, independent of row order)."""

        def sort_key(t: TeacherAvailability):
            tid = t.teacher_id
            return (0, int(tid), "") if isinstance(tid, int) or str(tid).isdigit() else (1, 0, str(tid))

        return sorted(self.by_id.values(), key=sort_key)

    def __len__(self) -> int:
        return len(self.by_id)


def build_teacher_index(rows: Iterable[Mapping[str, Any]], spans: Sequence[PeriodSpan]) -> TeacherIndex:
    """Build the id/name index from teacher rows.

    Each row needs `id` and `full_name`; `availability_json` is the raw profile
    (None when the teacher has no profile row).
    """

    index = TeacherIndex()
    for r in rows:
        tid = r.get("id")
        name = str(r.get("full_name") or "").strip() or f"T{tid}"
        raw = r.get("availability_json")
        grid = None if raw is None else availability_to_periods(raw, spans)
        entry = TeacherAvailability(teacher_id=tid, name=name, grid=grid)
        index.by_id[entry.key] = entry
        index.by_name[teacher_key_for_name(name)] = entry
    return index


def committed_teacher_busy(
    schedules: Iterable[Any],
    index: TeacherIndex,
) -> Dict[str, Dict[str, List[bool]]]:
    """Periods already taken by teachers in other classes' committed schedules.

    Keys are teacher keys: by normalized name, plus by id when the name maps to
    a known teacher.
    """

    busy: Dict[str, Dict[str, List[bool]]] = {}

    def grid_for(key: str) -> Dict[str, List[bool]]:
        if key not in busy:
            busy[key] = {d: [False] * PERIODS_PER_DAY for d in WORKING_DAYS}
        return busy[key]

    for sch in schedules:
        if isinstance(sch, (str, bytes)):
            try:
                sch = json.loads(sch or "null")
            except json.JSONDecodeError:
                continue
        if not isinstance(sch, Mapping):
            continue
        for day in WORKING_DAYS:
            row = sch.get(day)
            if not isinstance(row, list):
                continue
            for i, cell in enumerate(row[:PERIODS_PER_DAY]):
                if not isinstance(cell, Mapping):
                    continue
                name = cell.get("teacher") or cell.get("teacherName")
                if not name:
                    continue
                grid_for(teacher_key_for_name(name))[day][i] = True
                entry = index.get_by_name(name)
                if entry is not None:
                    grid_for(entry.key)[day][i] = True
    return busy
