from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Callable

from .availability import compute_slots
from .booking import NewReservation, Reservation, TimeRange, TimeSlot
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
)
from .event_window import EventWindowPolicy
from .passcodes import hash_passcode, is_valid_passcode, verify_passcode
from .store import ReservationStore
from .time_grid import is_aligned, require_aware

logger = logging.getLogger(__name__)

MAX_DJ_NAME_LENGTH = 100
DEFAULT_MAX_DURATION = timedelta(minutes=60)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EventConfig:
    event_start_time: datetime | None
    event_end_time: datetime | None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "event_start_time": self.event_start_time.isoformat() if self.event_start_time else None,
            "event_end_time": self.event_end_time.isoformat() if self.event_end_time else None,
        }


@dataclass(frozen=True)
class NowPlaying:
    current: Reservation | None
    upcoming: Reservation | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.to_public_dict() if self.current else None,
            "next": self.upcoming.to_public_dict() if self.upcoming else None,
        }


def validate_reservation_request(
    dj_name: Any,
    start_time: Any,
    end_time: Any,
    passcode: Any,
    *,
    now: datetime,
    window: EventWindowPolicy,
    max_duration: timedelta = DEFAULT_MAX_DURATION,
) -> TimeRange:
    """Run the creation checks in order and return the normalized UTC range.

    The first failing check raises; later checks never run.
    """
    if not isinstance(dj_name, str) or not dj_name.strip():
        raise InvalidInput("DJ name is required.")
    if len(dj_name) > MAX_DJ_NAME_LENGTH:
        raise InvalidInput(f"DJ name must be at most {MAX_DJ_NAME_LENGTH} characters.")
    for label, value in (("startTime", start_time), ("endTime", end_time)):
        if not isinstance(value, datetime) or value.tzinfo is None or value.utcoffset() is None:
            raise InvalidInput(f"{label} must be a timezone-aware timestamp.")

    if not is_valid_passcode(passcode):
        raise InvalidPasscode()

    if not is_aligned(start_time):
        raise InvalidTimeInterval("Start time must be on 15-minute intervals.")
    if not is_aligned(end_time):
        raise InvalidTimeInterval("End time must be on 15-minute intervals.")

    start = start_time.astimezone(timezone.utc)
    end = end_time.astimezone(timezone.utc)
    if end <= start:
        raise InvalidTimeRange()
    if end - start > max_duration:
        minutes = int(max_duration.total_seconds() // 60)
        raise DurationTooLong(f"Reservation duration cannot exceed {minutes} minutes.")
    if start <= now:
        raise PastTime()

    if window.start is not None and start < window.start:
        raise BeforeEventStart()
    if not window.contains(start) or (window.end is not None and end > window.end):
        raise ExceedsEventEnd()

    return TimeRange(start, end)


class ReservationEngine:
    """Availability queries, creation and passcode-guarded deletion for the booth."""

    def __init__(
        self,
        store: ReservationStore,
        window: EventWindowPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
        max_duration: timedelta = DEFAULT_MAX_DURATION,
    ) -> None:
        self.store = store
        self.window = window or EventWindowPolicy()
        self._clock = clock or utc_now
        self.max_duration = max_duration

    def now(self) -> datetime:
        current = self._clock()
        if current.tzinfo is None:
            raise ValueError("clock must return timezone-aware datetimes")
        return current.astimezone(timezone.utc)

    def get_available_slots(self, start_time: datetime, end_time: datetime | None = None) -> list[TimeSlot]:
        return compute_slots(self.store, self.window, start_time, end_time, self.now())

    def list_reservations(self, date_filter: date | None = None, tz: tzinfo = timezone.utc) -> list[Reservation]:
        start: datetime | None = None
        end: datetime | None = None
        if date_filter is not None:
            start = datetime.combine(date_filter, time.min, tzinfo=tz).astimezone(timezone.utc)
            end = datetime.combine(date_filter + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)

        records = self.store.find_in_range(start, end)
        return [
            record
            for record in sorted(records, key=lambda record: record.start)
            if (self.window.start is None or record.start >= self.window.start)
            and (self.window.end is None or record.end <= self.window.end)
        ]

    def create_reservation(self, dj_name: str, start_time: datetime, end_time: datetime, passcode: str) -> Reservation:
        now = self.now()
        try:
            time_range = validate_reservation_request(
                dj_name,
                start_time,
                end_time,
                passcode,
                now=now,
                window=self.window,
                max_duration=self.max_duration,
            )
        except ValueError as error:
            logger.info("Rejected reservation request: %s", error)
            raise

        created = self.store.insert_if_no_conflict(
            NewReservation(
                dj_name=dj_name,
                time_range=time_range,
                passcode_hash=hash_passcode(passcode),
                created_at=now,
            )
        )
        logger.info("Created reservation %s (%s - %s)", created.reservation_id, created.start, created.end)
        return created

    def delete_reservation(self, reservation_id: str, passcode: str) -> None:
        record = self.store.get(reservation_id)
        if record is None:
            raise NotFound()
        if not isinstance(passcode, str) or not verify_passcode(passcode, record.passcode_hash):
            logger.info("Passcode mismatch deleting reservation %s", reservation_id)
            raise PasscodeMismatch()

        self.store.delete_by_id(reservation_id)
        logger.info("Deleted reservation %s", reservation_id)

    def get_event_config(self) -> EventConfig:
        return EventConfig(event_start_time=self.window.start, event_end_time=self.window.end)

    def get_current_and_next(self, now: datetime | None = None) -> NowPlaying:
        now = self.now() if now is None else require_aware(now, "now").astimezone(timezone.utc)
        current: Reservation | None = None
        upcoming: Reservation | None = None
        for record in self.store.find_in_range(now, None):
            if record.time_range.contains(now):
                current = record
            elif record.start > now and (upcoming is None or record.start < upcoming.start):
                upcoming = record
        return NowPlaying(current=current, upcoming=upcoming)
