from __future__ import annotations


class ReservationError(Exception):
    """Base class for every rejection the engine surfaces to its callers."""

    code = "RESERVATION_ERROR"
    http_status = 400
    default_message = "Reservation request was rejected."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidInput(ReservationError, ValueError):
    code = "INVALID_INPUT"
    default_message = "DJ name must be between 1 and 100 characters."


class InvalidPasscode(ReservationError, ValueError):
    code = "INVALID_PASSCODE"
    default_message = "Passcode must be exactly 4 digits."


class PasscodeMismatch(InvalidPasscode):
    http_status = 401
    default_message = "Invalid passcode."


class InvalidTimeInterval(ReservationError, ValueError):
    code = "INVALID_TIME_INTERVAL"
    default_message = "Times must be on 15-minute intervals."


class InvalidTimeRange(ReservationError, ValueError):
    code = "INVALID_TIME_RANGE"
    default_message = "End time must be after start time."


class DurationTooLong(ReservationError, ValueError):
    code = "DURATION_TOO_LONG"
    default_message = "Reservation duration cannot exceed 1 hour."


class PastTime(ReservationError, ValueError):
    code = "PAST_TIME"
    default_message = "Cannot create reservation in the past."


class BeforeEventStart(ReservationError, ValueError):
    code = "BEFORE_EVENT_START"
    default_message = "Reservation cannot start before event start time."


class ExceedsEventEnd(ReservationError, ValueError):
    code = "EXCEEDS_EVENT_END"
    default_message = "Reservation cannot extend beyond event end time."


class RangeTooLarge(ReservationError, ValueError):
    code = "RANGE_TOO_LARGE"
    default_message = "Query range exceeds the allowed horizon."


class TimeConflict(ReservationError, ValueError):
    code = "TIME_CONFLICT"
    http_status = 409
    default_message = "Time slot is already reserved."


class NotFound(ReservationError, LookupError):
    code = "NOT_FOUND"
    http_status = 404
    default_message = "Reservation not found."


class ReservationStorageError(RuntimeError):
    """Infrastructure failure in the backing store; safe for the caller to retry."""

    code = "STORAGE_ERROR"
    http_status = 500


class SettingsError(ValueError):
    pass
