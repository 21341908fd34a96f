"""Exceptions raised by the weekly schedule builder.

Every build failure carries a structured payload so the caller can show which
subject / day / period is the bottleneck.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ScheduleBuildError(Exception):
    """Base class for build failures that are reported back to the caller."""

    status_code = 400

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload: Dict[str, Any] = dict(payload or {})

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message, **self.payload}


class InfeasibleDemandError(ScheduleBuildError):
    """Demand cannot fit the grid; retrying placement will not help."""

    status_code = 422


class InfeasibleSubjectError(InfeasibleDemandError):
    def __init__(self, *, subject: str, required: int, max_available: int, teacher: str):
        super().__init__(
            f'Subject "{subject}" needs {required} periods but teacher availability allows max '
            f"{max_available} (≤3 per day rule).",
            {
                "subject": subject,
                "required": required,
                "max_available_with_rule": max_available,
                "teacher": teacher or "(unknown)",
            },
        )


class CapacityExceededError(InfeasibleDemandError):
    def __init__(self, *, capacity: int, total_hours: int, by_subject: List[Dict[str, Any]]):
        super().__init__(
            f"Total weekly hours ({total_hours}) exceed weekly capacity ({capacity}).",
            {"capacity": capacity, "total_hours": total_hours, "by_subject": list(by_subject)},
        )


class PlacementFailedError(ScheduleBuildError):
    """All randomized attempts stalled; payload describes the last stall."""

    status_code = 409

    def __init__(self, *, day: str, slot: int, candidates: List[Dict[str, Any]], attempts: int):
        super().__init__(
            f"Couldn't place a subject at {day} period {slot} under teachers' availability and ≤3/day rule.",
            {"day": day, "slot": slot, "candidates": list(candidates), "attempts": attempts},
        )


class SchedulePersistenceError(Exception):
    """Saving a successfully built schedule failed.

    The computed result is kept on `.result` so callers can retry the save only.
    """

    def __init__(self, message: str, result: Any):
        super().__init__(message)
        self.result = result
