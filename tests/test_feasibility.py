from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from conftest import teacher_row, windows
from modules.availability import TeacherAvailability, TeacherIndex, build_teacher_index
from modules.demand import ResolvedTeacher, aggregate_demand, parse_subject_rows
from modules.errors import CapacityExceededError, InfeasibleDemandError, InfeasibleSubjectError
from modules.feasibility import check_feasibility, weekly_max
from modules.time_grid import PERIODS_PER_DAY, WORKING_DAYS, build_period_spans


SPANS = build_period_spans(4)


def _profile(subject_rows, teacher_rows=()):
    index = build_teacher_index(teacher_rows, SPANS) if teacher_rows else TeacherIndex()
    return aggregate_demand(parse_subject_rows(subject_rows), index, random.Random(0))


def test_weekly_max_unconstrained_is_fifteen() -> None:
    assert weekly_max(ResolvedTeacher(name="")) == 15
    assert weekly_max(ResolvedTeacher(name="X", availability=TeacherAvailability(1, "X", None))) == 15


def test_weekly_max_is_capped_per_day() -> None:
    grid = {
        "Monday": (True,) * 7,
        "Tuesday": (True, True) + (False,) * 5,
        "Wednesday": (False,) * 7,
        "Thursday": (True,) + (False,) * 6,
        "Saturday": (True,) * 4 + (False,) * 3,
    }
    t = ResolvedTeacher(name="X", availability=TeacherAvailability(1, "X", grid))
    assert weekly_max(t) == 3 + 2 + 0 + 1 + 3
    assert weekly_max(t, daily_cap=1) == 4


def test_capacity_exceeded_never_reaches_placement() -> None:
    profile = _profile([{"name": f"S{i}", "hours": 10} for i in range(4)])

    with pytest.raises(CapacityExceededError) as ei:
        check_feasibility(profile)

    err = ei.value
    assert err.status_code == 422
    assert err.payload["capacity"] == 35
    assert err.payload["total_hours"] == 40
    assert {"subject": "S0", "weekly_hours": 10} in err.payload["by_subject"]
    assert isinstance(err, InfeasibleDemandError)


def test_subject_beyond_teacher_availability_is_named() -> None:
    three_days = windows("08:00", "15:00", days=("mon", "tue", "wed"))
    profile = _profile(
        [{"name": "Math", "hours": 20, "teacher_id": 1}, {"name": "Art", "hours": 2}],
        [teacher_row(1, "Amina Khalil", three_days)],
    )

    with pytest.raises(InfeasibleSubjectError) as ei:
        check_feasibility(profile)

    payload = ei.value.to_payload()
    assert payload["subject"] == "Math"
    assert payload["required"] == 20
    assert payload["max_available_with_rule"] == 9
    assert payload["teacher"] == "Amina Khalil"
    assert "Math" in payload["message"]


def test_subject_check_runs_before_capacity_check() -> None:
    profile = _profile([{"name": "Math", "hours": 16}, {"name": "English", "hours": 30}])

    with pytest.raises(InfeasibleSubjectError) as ei:
        check_feasibility(profile)
    assert ei.value.payload["subject"] == "Math"


def test_teacher_without_any_slot_is_infeasible() -> None:
    profile = _profile(
        [{"name": "Math", "hours": 1, "teacher_id": 1}, {"name": "English", "hours": 34}],
        [teacher_row(1, "Busy", {})],
    )
    with pytest.raises(InfeasibleSubjectError) as ei:
        check_feasibility(profile)
    assert ei.value.payload["max_available_with_rule"] == 0


def test_large_activity_filler_is_infeasible() -> None:
    profile = _profile([{"name": "Math", "hours": 10}])

    with pytest.raises(InfeasibleSubjectError) as ei:
        check_feasibility(profile)
    assert ei.value.payload["subject"] == "Activity"
    assert ei.value.payload["required"] == 25
    assert ei.value.payload["teacher"] == "(unknown)"


def test_feasible_profile_returns_maxima() -> None:
    profile = _profile(
        [{"name": f"S{i}", "hours": 3} for i in range(11)] + [{"name": "Last", "hours": 2}]
    )
    maxima = check_feasibility(profile)
    assert maxima == {s: 15 for s in profile.subjects}


def test_removing_availability_never_raises_the_weekly_max() -> None:
    rng = random.Random(3)
    grid = {d: tuple(True for _ in range(PERIODS_PER_DAY)) for d in WORKING_DAYS}
    prev = weekly_max(ResolvedTeacher(name="X", availability=TeacherAvailability(1, "X", grid)))

    cells = [(d, p) for d in WORKING_DAYS for p in range(PERIODS_PER_DAY)]
    rng.shuffle(cells)
    for d, p in cells:
        row = list(grid[d])
        row[p] = False
        grid = {**grid, d: tuple(row)}
        cur = weekly_max(ResolvedTeacher(name="X", availability=TeacherAvailability(1, "X", grid)))
        assert cur <= prev
        prev = cur
    assert prev == 0


def _is_feasible(profile) -> bool:
    try:
        check_feasibility(profile)
    except InfeasibleDemandError:
        return False
    return True


def test_raising_hours_never_turns_infeasible_into_feasible() -> None:
    # real demand stays >= 20, so the Activity filler never exceeds 15
    three_days = windows("08:00", "15:00", days=("mon", "tue", "wed"))
    teachers = [teacher_row(1, "Amina Khalil", three_days)]

    for varied in ("Math", "English"):
        seen_infeasible = False
        for hours in range(1, 26):
            demand = {"Math": 5, "English": 10, "Science": 10}
            demand[varied] = hours
            rows = [
                {"name": "Math", "hours": demand["Math"], "teacher_id": 1},
                {"name": "English", "hours": demand["English"], "teacher_name": "Guest A"},
                {"name": "Science", "hours": demand["Science"], "teacher_name": "Guest B"},
            ]
            profile = _profile(rows, teachers)
            if sum(demand.values()) < 20:
                continue
            feasible = _is_feasible(profile)
            assert not (seen_infeasible and feasible), f"{varied}={hours} became feasible again"
            seen_infeasible = seen_infeasible or not feasible
        assert seen_infeasible


def test_activity_filler_is_exempt_from_monotonicity() -> None:
    short = _profile([{"name": "Math", "hours": 9}, {"name": "English", "hours": 10}])
    with pytest.raises(InfeasibleSubjectError) as ei:
        check_feasibility(short)
    assert ei.value.payload["subject"] == "Activity"
    assert ei.value.payload["required"] == 16

    # one more Math period shrinks the filler to 15 and the class fits
    enough = _profile([{"name": "Math", "hours": 10}, {"name": "English", "hours": 10}])
    assert _is_feasible(enough)
