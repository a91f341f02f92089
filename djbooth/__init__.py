from .booking import NewReservation, Reservation, TimeRange, TimeSlot, can_reserve, has_time_overlap
from .engine import EventConfig, NowPlaying, ReservationEngine, validate_reservation_request
from .errors import (
	BeforeEventStart,
	DurationTooLong,
	ExceedsEventEnd,
	InvalidInput,
	InvalidPasscode,
	InvalidTimeInterval,
	InvalidTimeRange,
	NotFound,
	PastTime,
	PasscodeMismatch,
	RangeTooLarge,
	ReservationError,
	ReservationStorageError,
	SettingsError,
	TimeConflict,
)
from .event_window import EventWindowPolicy
from .store import InMemoryReservationStore, ReservationStore
from .time_grid import GRANULARITY, aligned_slots_between, is_aligned
from .yaml_store import ReservationYamlStore

__all__ = [
	"NewReservation",
	"Reservation",
	"TimeRange",
	"TimeSlot",
	"can_reserve",
	"has_time_overlap",
	"EventConfig",
	"NowPlaying",
	"ReservationEngine",
	"validate_reservation_request",
	"BeforeEventStart",
	"DurationTooLong",
	"ExceedsEventEnd",
	"InvalidInput",
	"InvalidPasscode",
	"InvalidTimeInterval",
	"InvalidTimeRange",
	"NotFound",
	"PastTime",
	"PasscodeMismatch",
	"RangeTooLarge",
	"ReservationError",
	"ReservationStorageError",
	"SettingsError",
	"TimeConflict",
	"EventWindowPolicy",
	"InMemoryReservationStore",
	"ReservationStore",
	"GRANULARITY",
	"aligned_slots_between",
	"is_aligned",
	"ReservationYamlStore",
]
