"""Demand aggregation: subject rows -> weekly periods per subject + teacher.

Subject rows come from a loosely-typed store, so column names are looked up
through alias lists. Rows for the same subject (case-insensitive) are merged
by summing hours; the first row decides the teacher.

Teacher resolution per subject:
1. explicit teacher id   -> lookup by id
2. explicit teacher name -> lookup by normalized name
3. nothing               -> round-robin from the shuffled teacher pool

A subject whose teacher has no profile is unconstrained (always available).
If total demand is below the weekly capacity, a synthetic "Activity" subject
without a teacher pads the week.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .availability import (
    TeacherAvailability,
    TeacherIndex,
    normalize_name,
    teacher_key_for_id,
    teacher_key_for_name,
)
from .time_grid import WEEKLY_CAPACITY


logger = logging.getLogger(__name__)

ACTIVITY_SUBJECT = "Activity"
PLACEHOLDER_TEACHER = "—"

NAME_KEYS = ("name", "subject", "subject_name", "title", "material", "course")
HOURS_KEYS = (
    "weekly_hours",
    "hours",
    "hours_per_week",
    "weekly_periods",
    "periods",
    "num_periods",
    "num_hours",
    "sessions",
    "sessions_per_week",
    "per_week",
)
TEACHER_ID_KEYS = ("teacher_user_id", "teacher_id", "user_id", "t_user_id")
TEACHER_NAME_KEYS = ("teacher_name", "teacher", "teacher_full_name", "t_name", "full_name")


@dataclass(frozen=True)
class SubjectRow:
    subject: str
    hours: int
    teacher_id: Any = None
    teacher_name: Optional[str] = None


@dataclass(frozen=True)
class ResolvedTeacher:
    name: str
    key: Optional[str] = None
    # None => no availability profile, never blocks placement
    availability: Optional[TeacherAvailability] = None

    @property
    def unconstrained(self) -> bool:
        return self.availability is None or self.availability.grid is None

    def is_available(self, day: str, period_idx: int) -> bool:
        if self.availability is None:
            return True
        return self.availability.is_available(day, period_idx)


@dataclass
class SubjectDemand:
    subject: str
    hours: int
    teacher: ResolvedTeacher


@dataclass
class DemandProfile:
    # insertion ordered: subject display name -> demand
    subjects: Dict[str, SubjectDemand] = field(default_factory=dict)
    capacity: int = WEEKLY_CAPACITY
    filler_hours: int = 0

    @property
    def total_hours(self) -> int:
        return sum(d.hours for d in self.subjects.values())

    def hours_by_subject(self) -> Dict[str, int]:
        return {s: d.hours for s, d in self.subjects.items()}


def _pick(row: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        v = row.get(k)
        if v is not None:
            return v
    return None


def coerce_hours(value: Any) -> int:
    """Weekly hours default to 1 when missing, blank, non-numeric or negative."""

    if value is None or str(value).strip() == "":
        return 1
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(hours) or hours < 0:
        return 1
    return int(hours)


def parse_subject_rows(rows: Iterable[Mapping[str, Any]]) -> List[SubjectRow]:
    out: List[SubjectRow] = []
    for r in rows:
        name = _pick(r, NAME_KEYS)
        if name is None or not str(name).strip():
            continue
        teacher_name = _pick(r, TEACHER_NAME_KEYS)
        out.append(
            SubjectRow(
                subject=str(name).strip(),
                hours=coerce_hours(_pick(r, HOURS_KEYS)),
                teacher_id=_pick(r, TEACHER_ID_KEYS),
                teacher_name=str(teacher_name).strip() if teacher_name is not None else None,
            )
        )
    return out


def _resolve_explicit(row: SubjectRow, index: TeacherIndex) -> ResolvedTeacher:
    name = (row.teacher_name or "").strip()
    key: Optional[str] = None

    if row.teacher_id is not None:
        entry = index.get_by_id(row.teacher_id)
        if entry is not None:
            name = entry.name or name
            key = entry.key
        else:
            # Unknown id: keep the key, availability may still come from the name.
            key = teacher_key_for_id(row.teacher_id)
    elif name:
        entry = index.get_by_name(name)
        if entry is not None:
            key = entry.key

    return ResolvedTeacher(name=name, key=key, availability=index.resolve(key, name) if name or key else None)


def teacher_pool(index: TeacherIndex, rng: random.Random) -> List[TeacherAvailability]:
    """Known teachers ordered by id, one per display name, shuffled by `rng`."""

    seen: set[str] = set()
    pool: List[TeacherAvailability] = []
    for t in index.teachers():
        n = normalize_name(t.name)
        if n in seen:
            continue
        seen.add(n)
        pool.append(t)
    rng.shuffle(pool)
    return pool


def aggregate_demand(
    rows: Iterable[SubjectRow],
    index: TeacherIndex,
    rng: random.Random,
    *,
    capacity: int = WEEKLY_CAPACITY,
) -> DemandProfile:
    profile = DemandProfile(capacity=capacity)
    display: Dict[str, str] = {}  # normalized -> first spelling

    for r in rows:
        norm = normalize_name(r.subject)
        if not norm:
            continue
        hours = max(0, int(r.hours))
        if norm not in display:
            display[norm] = r.subject.strip()
            profile.subjects[display[norm]] = SubjectDemand(
                subject=display[norm],
                hours=hours,
                teacher=_resolve_explicit(r, index),
            )
        else:
            profile.subjects[display[norm]].hours += hours

    # Fill missing teachers round-robin.
    pool = teacher_pool(index, rng)
    pool_idx = 0
    for demand in profile.subjects.values():
        if demand.teacher.name:
            continue
        if pool:
            pick = pool[pool_idx % len(pool)]
            pool_idx += 1
            demand.teacher = ResolvedTeacher(name=pick.name, key=pick.key, availability=pick)
            logger.debug("Assigned %s to subject %r (round-robin)", pick.name, demand.subject)
        else:
            demand.teacher = ResolvedTeacher(name=PLACEHOLDER_TEACHER)

    total = profile.total_hours
    if total < capacity:
        shortfall = capacity - total
        existing = display.get(normalize_name(ACTIVITY_SUBJECT))
        if existing is not None:
            profile.subjects[existing].hours += shortfall
            profile.subjects[existing].teacher = ResolvedTeacher(name="")
        else:
            profile.subjects[ACTIVITY_SUBJECT] = SubjectDemand(
                subject=ACTIVITY_SUBJECT,
                hours=shortfall,
                teacher=ResolvedTeacher(name=""),
            )
        profile.filler_hours = shortfall

    return profile


def mask_committed_busy(profile: DemandProfile, busy: Mapping[str, Mapping[str, Sequence[bool]]]) -> int:
    """Remove periods a subject's teacher already teaches elsewhere.

    `busy` comes from `availability.committed_teacher_busy`. Returns the number
    of subjects whose teacher availability was narrowed.
    """

    changed = 0
    for demand in profile.subjects.values():
        t = demand.teacher
        if not t.name or t.name == PLACEHOLDER_TEACHER:
            continue
        grid = (busy.get(t.key) if t.key else None) or busy.get(teacher_key_for_name(t.name))
        if not grid or not any(any(row) for row in grid.values()):
            continue
        base = t.availability or TeacherAvailability(teacher_id=None, name=t.name, grid=None)
        demand.teacher = ResolvedTeacher(name=t.name, key=t.key, availability=base.masked(grid))
        changed += 1
    return changed
