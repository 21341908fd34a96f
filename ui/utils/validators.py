"""Validation helpers for Streamlit forms."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple


def require_non_empty(value: str, field: str) -> Tuple[bool, str]:
    if not value or not value.strip():
        return False, f"{field} cannot be empty"
    return True, ""


def validate_positive_int(value: int, field: str, min_value: int = 1, max_value: int | None = None) -> Tuple[bool, str]:
    if value is None:
        return False, f"{field} is required"
    if value < min_value:
        return False, f"{field} must be >= {min_value}"
    if max_value is not None and value > max_value:
        return False, f"{field} must be <= {max_value}"
    return True, ""


def validate_seed(value: str) -> Tuple[bool, str]:
    """Seed is optional; when given it must be a non-negative integer."""

    text = str(value or "").strip()
    if not text:
        return True, ""
    if not text.isdigit():
        return False, "Seed must be a non-negative whole number"
    return True, ""


def parse_schedule_json(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Parse a manually edited schedule.

    Only the shape is checked (a JSON object of day -> list). The scheduling
    rules are deliberately not enforced for manual edits.
    """

    ok, msg = require_non_empty(text, "Schedule JSON")
    if not ok:
        return None, msg
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return None, f"Schedule JSON is invalid: {exc.msg} (line {exc.lineno})"
    if not isinstance(data, dict):
        return None, "Schedule JSON must be an object of day -> list of periods"
    for day, row in data.items():
        if not isinstance(row, list):
            return None, f"{day} must be a list of periods"
    return data, ""
