"""Weekly class timetable placement.

This module fills one class's weekly grid (5 working days x 7 periods) from a
feasible demand profile (see `modules.demand` and `modules.feasibility`).

It is a randomized greedy construction:
- shuffle the working days, then shuffle the periods of each day
- for each (day, period) pick a subject at random, weighted by its remaining
  demand, among subjects that
    * still need periods,
    * have fewer than 3 periods on that day,
    * have their teacher available at that exact period (or no profile)
- if no subject qualifies the attempt is dead; start over with a new seed

Attempts are driven by `optimizer.restarts`. After the last failed attempt a
`PlacementFailedError` describes the exact stalled slot and every subject that
still had demand there.

Schedule format
---------------
``{"Monday": [cell x 7], ...}`` where a cell is ``None`` or
``{"subject": ..., "teacher": ..., "room": ""}``. Rooms are assigned later by
whoever edits the schedule.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from optimizer import AttemptOutcome, RestartConfig, run_with_restarts, seeded_shuffle, sub_seed
from optimizer.restarts import DEFAULT_SEED_STEP

from .demand import DemandProfile
from .errors import PlacementFailedError
from .time_grid import DAILY_CAP, PERIODS_PER_DAY, WORKING_DAYS


logger = logging.getLogger(__name__)

WeeklySchedule = Dict[str, List[Optional[Dict[str, str]]]]

DAY_ORDER_SALT = 0x9E3779B1


# ----------------------------
# Settings
# ----------------------------


@dataclass(frozen=True)
class BuildSettings:
    max_attempts: int = 6
    daily_cap: int = DAILY_CAP
    seed_step: int = DEFAULT_SEED_STEP

    # Period grid
    day_start: str = "08:00"
    period_minutes: int = 50
    break_minutes: int = 25

    # Also block periods where the teacher already teaches another class.
    avoid_committed_clashes: bool = False


# ----------------------------
# State representation
# ----------------------------


def empty_schedule() -> WeeklySchedule:
    return {d: [None] * PERIODS_PER_DAY for d in WORKING_DAYS}


@dataclass
class _AttemptState:
    schedule: WeeklySchedule
    remaining: Dict[str, int]
    per_day: Dict[str, Dict[str, int]]
    stalled_at: Optional[Tuple[str, int]] = None  # (day, 0-based period)

    @classmethod
    def fresh(cls, profile: DemandProfile) -> "_AttemptState":
        return cls(
            schedule=empty_schedule(),
            remaining={s: d.hours for s, d in profile.subjects.items() if d.hours > 0},
            per_day={d: {} for d in WORKING_DAYS},
        )


@dataclass
class PlacementResult:
    schedule: WeeklySchedule
    seed: int
    initial_seed: int
    attempts: int
    seeds: List[int] = field(default_factory=list)


# ----------------------------
# Placement
# ----------------------------


def _eligible(
    profile: DemandProfile,
    state: _AttemptState,
    day: str,
    period_idx: int,
    daily_cap: int,
) -> Tuple[List[str], List[int]]:
    keys: List[str] = []
    weights: List[int] = []
    used = state.per_day[day]
    for subject, rem in state.remaining.items():
        if rem <= 0:
            continue
        if used.get(subject, 0) >= daily_cap:
            continue
        if not profile.subjects[subject].teacher.is_available(day, period_idx):
            continue
        keys.append(subject)
        weights.append(rem)
    return keys, weights


def _run_attempt(profile: DemandProfile, seed: int, daily_cap: int) -> _AttemptState:
    state = _AttemptState.fresh(profile)
    rng = random.Random(seed)

    for day in seeded_shuffle(WORKING_DAYS, sub_seed(seed, DAY_ORDER_SALT)):
        for p in seeded_shuffle(range(PERIODS_PER_DAY), sub_seed(seed, len(day))):
            keys, weights = _eligible(profile, state, day, p, daily_cap)
            if not keys:
                state.stalled_at = (day, p)
                return state

            chosen = rng.choices(keys, weights=weights)[0]
            teacher = profile.subjects[chosen].teacher
            state.schedule[day][p] = {"subject": chosen, "teacher": teacher.name or "", "room": ""}
            state.remaining[chosen] -= 1
            state.per_day[day][chosen] = state.per_day[day].get(chosen, 0) + 1
            if state.remaining[chosen] == 0:
                del state.remaining[chosen]

    return state


def stall_candidates(profile: DemandProfile, state: _AttemptState) -> List[Dict[str, Any]]:
    """Describe every subject still carrying demand at the stalled slot."""

    assert state.stalled_at is not None
    day, p = state.stalled_at
    return [
        {
            "subject": subject,
            "remaining": rem,
            "used_today": state.per_day[day].get(subject, 0),
            "teacher": profile.subjects[subject].teacher.name or "",
            "teacher_available": profile.subjects[subject].teacher.is_available(day, p),
        }
        for subject, rem in state.remaining.items()
    ]


def place_weekly_schedule(
    profile: DemandProfile,
    *,
    seed: Optional[int] = None,
    settings: BuildSettings = BuildSettings(),
) -> PlacementResult:
    """Fill the weekly grid or raise `PlacementFailedError`.

    `profile` must already have passed `check_feasibility`.
    """

    def attempt(k: int, attempt_seed: int) -> AttemptOutcome[_AttemptState]:
        state = _run_attempt(profile, attempt_seed, settings.daily_cap)
        return AttemptOutcome(ok=state.stalled_at is None, state=state)

    def on_attempt(attempt: int, seed: int, outcome: AttemptOutcome[_AttemptState]) -> None:
        if not outcome.ok:
            day, p = outcome.state.stalled_at or ("?", -1)
            logger.debug("Attempt %d (seed=%d) stalled at %s period %d", attempt + 1, seed, day, p + 1)

    result = run_with_restarts(
        attempt,
        RestartConfig(attempts=settings.max_attempts, seed=seed, seed_step=settings.seed_step),
        callback=on_attempt,
    )

    state = result.state
    if not result.ok:
        day, p = state.stalled_at  # type: ignore[misc]
        raise PlacementFailedError(
            day=day,
            slot=p + 1,
            candidates=stall_candidates(profile, state),
            attempts=result.attempts,
        )

    return PlacementResult(
        schedule=state.schedule,
        seed=result.seed,
        initial_seed=result.initial_seed,
        attempts=result.attempts,
        seeds=list(result.seeds),
    )


# ----------------------------
# Metrics
# ----------------------------


def compute_metrics(
    profile: DemandProfile,
    schedule: WeeklySchedule,
    daily_cap: int = DAILY_CAP,
) -> Dict[str, float]:
    """Check a schedule against the hard rules (also works for manual edits)."""

    filled = 0
    placed: Dict[str, int] = {}
    cap_violations = 0
    availability_violations = 0
    max_per_day = 0

    for day in WORKING_DAYS:
        counts: Dict[str, int] = {}
        for p, cell in enumerate((schedule.get(day) or [])[:PERIODS_PER_DAY]):
            if not isinstance(cell, dict) or not cell.get("subject"):
                continue
            subject = str(cell["subject"])
            filled += 1
            placed[subject] = placed.get(subject, 0) + 1
            counts[subject] = counts.get(subject, 0) + 1
            demand = profile.subjects.get(subject)
            if demand is not None and not demand.teacher.is_available(day, p):
                availability_violations += 1
        for c in counts.values():
            max_per_day = max(max_per_day, c)
            if c > daily_cap:
                cap_violations += c - daily_cap

    demand_mismatch = sum(
        abs(placed.get(s, 0) - d.hours) for s, d in profile.subjects.items()
    ) + sum(c for s, c in placed.items() if s not in profile.subjects)

    return {
        "filled_slots": float(filled),
        "weekly_capacity": float(len(WORKING_DAYS) * PERIODS_PER_DAY),
        "max_subject_periods_per_day": float(max_per_day),
        "daily_cap_violations": float(cap_violations),
        "availability_violations": float(availability_violations),
        "demand_mismatch": float(demand_mismatch),
    }


# ----------------------------
# Formatting helpers
# ----------------------------


def format_class_timetable(schedule: WeeklySchedule) -> List[List[str]]:
    """Return a table (rows=days, cols=periods) with 'SUBJECT (TEACHER)' or ''."""

    table = [["" for _ in range(PERIODS_PER_DAY)] for _ in WORKING_DAYS]
    for d_idx, day in enumerate(WORKING_DAYS):
        row = schedule.get(day) or []
        for p, cell in enumerate(row[:PERIODS_PER_DAY]):
            if not isinstance(cell, dict) or not cell.get("subject"):
                continue
            label = str(cell["subject"])
            teacher = str(cell.get("teacher") or "")
            if teacher:
                label = f"{label} ({teacher})"
            table[d_idx][p] = label
    return table
