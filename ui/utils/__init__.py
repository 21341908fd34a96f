"""UI utilities (form validators)."""

from .validators import parse_schedule_json, validate_positive_int, validate_seed

__all__ = ["parse_schedule_json", "validate_positive_int", "validate_seed"]
