"""Fixed daily period layout for weekly class timetables.

Every class uses the same grid:
- 5 working days (Monday..Thursday + Saturday, no Friday/Sunday)
- 7 periods of 50 minutes starting at 08:00
- one 25 minute break inserted after period 3 (KG / early grades) or 4

The grid is identical for all working days, so we only compute one list of
period spans per class.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple


WORKING_DAYS: Tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Saturday")
PERIODS_PER_DAY = 7
WEEKLY_CAPACITY = len(WORKING_DAYS) * PERIODS_PER_DAY  # 35
DAILY_CAP = 3

DEFAULT_DAY_START = "08:00"
DEFAULT_PERIOD_MINUTES = 50
DEFAULT_BREAK_MINUTES = 25

_EARLY_GRADE_RE = re.compile(
    r"(kg\s*[123](?!\d)|grade\s*[123](?!\d)|grade\s*(one|two|three)\b)"
)


@dataclass(frozen=True)
class PeriodSpan:
    index: int  # 1-indexed period number
    start: str  # "HH:MM"
    end: str
    start_minutes: int
    end_minutes: int


def hm_to_minutes(value) -> int | None:
    """Parse "HH:MM" (or "H", "HH:MM:SS") into minutes after midnight."""

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    parts = text.split(":")
    try:
        hours = int(parts[0] or 0)
        minutes = int(parts[1] or 0) if len(parts) > 1 else 0
    except ValueError:
        return None
    return hours * 60 + minutes


def minutes_to_hm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def break_after_for_class_name(class_name: str) -> int:
    """Younger grades (KG1-3, Grade 1-3) break after period 3, the rest after 4."""

    if _EARLY_GRADE_RE.search(str(class_name or "").lower()):
        return 3
    return 4


def build_period_spans(
    break_after: int,
    *,
    day_start: str = DEFAULT_DAY_START,
    period_minutes: int = DEFAULT_PERIOD_MINUTES,
    break_minutes: int = DEFAULT_BREAK_MINUTES,
    periods_per_day: int = PERIODS_PER_DAY,
) -> List[PeriodSpan]:
    start = hm_to_minutes(day_start)
    cur = start if start is not None else 8 * 60

    spans: List[PeriodSpan] = []
    for i in range(1, int(periods_per_day) + 1):
        s = cur
        e = s + int(period_minutes)
        spans.append(PeriodSpan(index=i, start=minutes_to_hm(s), end=minutes_to_hm(e), start_minutes=s, end_minutes=e))
        cur = e
        if i == int(break_after):
            cur += int(break_minutes)
    return spans
