"""Pre-placement feasibility checks.

Both checks are terminal: an infeasible demand profile cannot be fixed by
re-running the randomized placement.
"""

from __future__ import annotations

import logging
from typing import Dict

from .demand import DemandProfile, ResolvedTeacher
from .errors import CapacityExceededError, InfeasibleSubjectError
from .time_grid import DAILY_CAP, WORKING_DAYS


logger = logging.getLogger(__name__)


def weekly_max(teacher: ResolvedTeacher, daily_cap: int = DAILY_CAP) -> int:
    """Most periods a subject can get in a week under the daily cap."""

    if teacher.unconstrained:
        return len(WORKING_DAYS) * int(daily_cap)
    assert teacher.availability is not None
    return sum(min(int(daily_cap), teacher.availability.available_count(d)) for d in WORKING_DAYS)


def weekly_max_by_subject(profile: DemandProfile, daily_cap: int = DAILY_CAP) -> Dict[str, int]:
    return {s: weekly_max(d.teacher, daily_cap) for s, d in profile.subjects.items()}


def check_feasibility(profile: DemandProfile, daily_cap: int = DAILY_CAP) -> Dict[str, int]:
    """Raise if demand cannot fit; otherwise return the per-subject weekly max."""

    maxima = weekly_max_by_subject(profile, daily_cap)

    for subject, demand in profile.subjects.items():
        if demand.hours > maxima[subject]:
            logger.warning(
                "Subject %r needs %d periods, teacher %r allows %d",
                subject,
                demand.hours,
                demand.teacher.name,
                maxima[subject],
            )
            raise InfeasibleSubjectError(
                subject=subject,
                required=demand.hours,
                max_available=maxima[subject],
                teacher=demand.teacher.name,
            )

    total = profile.total_hours
    if total > profile.capacity:
        logger.warning("Weekly demand %d exceeds capacity %d", total, profile.capacity)
        raise CapacityExceededError(
            capacity=profile.capacity,
            total_hours=total,
            by_subject=[{"subject": s, "weekly_hours": h} for s, h in profile.hours_by_subject().items()],
        )

    return maxima
