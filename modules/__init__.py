"""Scheduling modules (time grid, availability, demand, feasibility, placement)."""

from .time_grid import (
	DAILY_CAP,
	PERIODS_PER_DAY,
	WEEKLY_CAPACITY,
	WORKING_DAYS,
	PeriodSpan,
	break_after_for_class_name,
	build_period_spans,
)

from .availability import (
	AvailabilityStatus,
	TeacherAvailability,
	TeacherIndex,
	availability_to_periods,
	build_teacher_index,
	normalize_day_key,
)

from .demand import (
	ACTIVITY_SUBJECT,
	DemandProfile,
	SubjectDemand,
	aggregate_demand,
	parse_subject_rows,
)

from .errors import (
	CapacityExceededError,
	InfeasibleDemandError,
	InfeasibleSubjectError,
	PlacementFailedError,
	ScheduleBuildError,
	SchedulePersistenceError,
)

from .feasibility import check_feasibility, weekly_max

from .class_scheduler import (
	BuildSettings,
	PlacementResult,
	compute_metrics,
	format_class_timetable,
	place_weekly_schedule,
)

from .schedule_service import (
	BuildResult,
	auto_build_schedule,
	get_schedule,
	put_schedule,
)

__all__ = [
	"DAILY_CAP",
	"PERIODS_PER_DAY",
	"WEEKLY_CAPACITY",
	"WORKING_DAYS",
	"PeriodSpan",
	"break_after_for_class_name",
	"build_period_spans",
	"AvailabilityStatus",
	"TeacherAvailability",
	"TeacherIndex",
	"availability_to_periods",
	"build_teacher_index",
	"normalize_day_key",
	"ACTIVITY_SUBJECT",
	"DemandProfile",
	"SubjectDemand",
	"aggregate_demand",
	"parse_subject_rows",
	"CapacityExceededError",
	"InfeasibleDemandError",
	"InfeasibleSubjectError",
	"PlacementFailedError",
	"ScheduleBuildError",
	"SchedulePersistenceError",
	"check_feasibility",
	"weekly_max",
	"BuildSettings",
	"PlacementResult",
	"compute_metrics",
	"format_class_timetable",
	"place_weekly_schedule",
	"BuildResult",
	"auto_build_schedule",
	"get_schedule",
	"put_schedule",
]
