from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui.database.db import DBConfig, db_session


ALL_DAYS = ("mon", "tue", "wed", "thu", "sat")


def windows(start: str, end: str, days: Iterable[str] = ALL_DAYS) -> Dict[str, dict]:
    """Availability profile with the same window on each of `days`."""

    return {d: {"enabled": True, "slots": [{"start": start, "end": end}]} for d in days}


def teacher_row(tid: int, name: str, availability: Optional[dict] = None, *, profile: bool = True) -> dict:
    raw = None if not profile else json.dumps(availability if availability is not None else {})
    return {"id": tid, "full_name": name, "availability_json": raw}


@pytest.fixture()
def db_conn(tmp_path, monkeypatch):
    db_path = tmp_path / "schedule.db"
    monkeypatch.setenv("CLASS_SCHEDULE_DB", str(db_path))
    with db_session(DBConfig(db_path=db_path)) as conn:
        yield conn
