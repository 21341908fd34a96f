"""Build / read / write operations for a class's weekly schedule.

This is the seam between the scheduling core and the store:

    class_id (+seed)
      -> class info, teachers + availability, other classes' schedules, subject rows
      -> demand profile -> feasibility check -> randomized placement
      -> upsert into `class_schedules`
      -> BuildResult(schedule, meta)

Failures are raised as `modules.errors` exceptions with structured payloads.
Store errors while *reading* propagate unchanged; a store error while *saving*
is wrapped in `SchedulePersistenceError`, which still carries the computed
result.
"""

from __future__ import annotations

import json
import logging
import random
import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Union

from optimizer import resolve_seed
from ui.database import crud

from .availability import build_teacher_index, committed_teacher_busy
from .class_scheduler import BuildSettings, WeeklySchedule, compute_metrics, place_weekly_schedule
from .demand import aggregate_demand, mask_committed_busy, parse_subject_rows
from .errors import SchedulePersistenceError
from .feasibility import check_feasibility
from .time_grid import PERIODS_PER_DAY, WEEKLY_CAPACITY, WORKING_DAYS, break_after_for_class_name, build_period_spans


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassInfo:
    class_id: Any
    name: str

    @property
    def break_after(self) -> int:
        return break_after_for_class_name(self.name)


@dataclass
class BuildResult:
    schedule: WeeklySchedule
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {"schedule": self.schedule, "meta": self.meta}


def _require_class_id(class_id: Any) -> None:
    if class_id is None or not str(class_id).strip():
        raise ValueError("class_id is required")


def fetch_class_info(conn: sqlite3.Connection, class_id: Any) -> ClassInfo:
    """Class name with fallbacks; an unknown class is not an error."""

    row = crud.get_class(conn, class_id)
    if row is None:
        return ClassInfo(class_id=class_id, name=f"Class {class_id}")
    grade = str(row.get("grade") or "")
    section = str(row.get("section") or "")
    name = row.get("name") or f"{grade}{' ' + section if section else ''}".strip() or f"Class {row['id']}"
    return ClassInfo(class_id=row["id"], name=str(name))


def auto_build_schedule(
    conn: sqlite3.Connection,
    class_id: Any,
    seed: Optional[int] = None,
    settings: BuildSettings = BuildSettings(),
) -> BuildResult:
    """Generate and persist the weekly schedule of one class."""

    _require_class_id(class_id)
    initial_seed = resolve_seed(seed)

    cls = fetch_class_info(conn, class_id)
    spans = build_period_spans(
        cls.break_after,
        day_start=settings.day_start,
        period_minutes=settings.period_minutes,
        break_minutes=settings.break_minutes,
    )
    logger.info("Building schedule for %s (class_id=%s, seed=%d)", cls.name, class_id, initial_seed)

    index = build_teacher_index(crud.list_teachers_with_availability(conn), spans)
    busy = committed_teacher_busy(crud.list_class_schedules_except(conn, class_id), index)
    logger.debug("%d teacher keys already booked by other classes", len(busy))

    rows = parse_subject_rows(crud.list_class_subject_rows(conn, class_id))
    profile = aggregate_demand(rows, index, random.Random(initial_seed))
    if settings.avoid_committed_clashes:
        narrowed = mask_committed_busy(profile, busy)
        logger.debug("Narrowed availability of %d subjects to avoid clashes", narrowed)

    check_feasibility(profile, settings.daily_cap)
    placement = place_weekly_schedule(profile, seed=initial_seed, settings=settings)

    result = BuildResult(
        schedule=placement.schedule,
        meta={
            "class_id": class_id,
            "class_name": cls.name,
            "days": len(WORKING_DAYS),
            "periods_per_day": PERIODS_PER_DAY,
            "weekly_capacity": WEEKLY_CAPACITY,
            "seed": placement.seed,
            "requested_seed": placement.initial_seed,
            "attempts": placement.attempts,
            "break_after": cls.break_after,
            "period_spans": [asdict(s) for s in spans],
            "metrics": compute_metrics(profile, placement.schedule, settings.daily_cap),
        },
    )

    try:
        with conn:
            crud.upsert_class_schedule(conn, class_id, result.schedule)
    except sqlite3.Error as exc:
        logger.exception("Saving schedule for class_id=%s failed", class_id)
        raise SchedulePersistenceError(f"Schedule built but could not be saved: {exc}", result) from exc

    logger.info(
        "Built schedule for %s in %d attempt(s) (seed=%d)", cls.name, placement.attempts, placement.seed
    )
    return result


def get_schedule(conn: sqlite3.Connection, class_id: Any) -> Any:
    """Last persisted schedule of a class, or {} when there is none."""

    _require_class_id(class_id)
    return crud.get_class_schedule(conn, class_id) or {}


def put_schedule(conn: sqlite3.Connection, class_id: Any, schedule: Union[str, Dict[str, Any], None]) -> None:
    """Manual override: store `schedule` as-is, without checking the rules."""

    _require_class_id(class_id)
    if isinstance(schedule, str):
        schedule = json.loads(schedule)
    with conn:
        crud.upsert_class_schedule(conn, class_id, schedule or {})
    logger.info("Stored manual schedule for class_id=%s", class_id)
