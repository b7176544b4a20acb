from .recurrence import MAX_WEEKDAY_MASK, RecurrenceRule, Weekday, WeekdaySet, expand_active_dates, iter_active_dates
from .booking import (
	Accepted,
	ConflictDetail,
	RejectionKind,
	Reservation,
	ReservationDraft,
	ReservationRejectedError,
	ReservationRequest,
	ValidationFailure,
	can_reserve,
	check_conflict,
	has_time_overlap,
	validate_request,
)
from .calendar_view import ExpandedOccurrence, project_calendar
from .payload import PayloadError, parse_date_filter, parse_reservation_payload
from .yaml_store import ReservationStorageError, ReservationYamlRepository, Vehicle, generate_sample_data

__all__ = [
	"MAX_WEEKDAY_MASK",
	"RecurrenceRule",
	"Weekday",
	"WeekdaySet",
	"expand_active_dates",
	"iter_active_dates",
	"Accepted",
	"ConflictDetail",
	"RejectionKind",
	"Reservation",
	"ReservationDraft",
	"ReservationRejectedError",
	"ReservationRequest",
	"ValidationFailure",
	"can_reserve",
	"check_conflict",
	"has_time_overlap",
	"validate_request",
	"ExpandedOccurrence",
	"project_calendar",
	"PayloadError",
	"parse_date_filter",
	"parse_reservation_payload",
	"ReservationStorageError",
	"ReservationYamlRepository",
	"Vehicle",
	"generate_sample_data",
]
