from .availability import DEFAULT_SLOT_MINUTES, OPERATING_END, OPERATING_START, available_slots
from .booking import (
	MINIMUM_DURATION_MINUTES,
	NewReservation,
	Reservation,
	can_reserve,
	find_conflict,
	is_valid_time_range,
	validate_new_reservation,
	validate_time_range,
)
from .errors import (
	ConflictError,
	InvalidFormatError,
	MinimumDurationError,
	MissingFieldError,
	NotFoundError,
	OrderingError,
	ParseError,
	ReservationStorageError,
	ResourceKindMismatchError,
	UnknownResourceError,
	ValidationError,
)
from .resources import DEFAULT_RESOURCES, KIND_SPACE, KIND_VEHICLE, Resource, ResourceRegistry
from .store import InMemoryReservationStore, ReservationStore
from .timeutil import is_same_day, minutes_to_time, ranges_overlap, time_to_minutes
from .yaml_store import ReservationYamlRepository

__all__ = [
	"DEFAULT_SLOT_MINUTES",
	"OPERATING_END",
	"OPERATING_START",
	"available_slots",
	"MINIMUM_DURATION_MINUTES",
	"NewReservation",
	"Reservation",
	"can_reserve",
	"find_conflict",
	"is_valid_time_range",
	"validate_new_reservation",
	"validate_time_range",
	"ConflictError",
	"InvalidFormatError",
	"MinimumDurationError",
	"MissingFieldError",
	"NotFoundError",
	"OrderingError",
	"ParseError",
	"ReservationStorageError",
	"ResourceKindMismatchError",
	"UnknownResourceError",
	"ValidationError",
	"DEFAULT_RESOURCES",
	"KIND_SPACE",
	"KIND_VEHICLE",
	"Resource",
	"ResourceRegistry",
	"InMemoryReservationStore",
	"ReservationStore",
	"is_same_day",
	"minutes_to_time",
	"ranges_overlap",
	"time_to_minutes",
	"ReservationYamlRepository",
]
