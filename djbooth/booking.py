from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Time range start must be earlier than end.")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        return has_time_overlap(self.start, self.end, other.start, other.end)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    """Return True when two time intervals overlap by even one instant.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-10:30 and 10:30-11:00) do not overlap.
    """
    if new_start >= new_end:
        raise ValueError("new_start must be earlier than new_end.")
    if exist_start >= exist_end:
        raise ValueError("exist_start must be earlier than exist_end.")

    return new_start < exist_end and exist_start < new_end


@dataclass(frozen=True)
class NewReservation:
    """A validated request, not yet owning an id."""

    dj_name: str
    time_range: TimeRange
    passcode_hash: str
    created_at: datetime


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    dj_name: str
    time_range: TimeRange
    passcode_hash: str
    created_at: datetime

    @property
    def start(self) -> datetime:
        return self.time_range.start

    @property
    def end(self) -> datetime:
        return self.time_range.end

    def to_dict(self) -> dict[str, str]:
        return {
            "reservation_id": self.reservation_id,
            "dj_name": self.dj_name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "passcode_hash": self.passcode_hash,
            "created_at": self.created_at.isoformat(),
        }

    def to_public_dict(self) -> dict[str, str]:
        payload = self.to_dict()
        del payload["passcode_hash"]
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        return Reservation(
            reservation_id=str(data["reservation_id"]),
            dj_name=str(data["dj_name"]),
            time_range=TimeRange(_parse_instant(data["start"]), _parse_instant(data["end"])),
            passcode_hash=str(data["passcode_hash"]),
            created_at=_parse_instant(data["created_at"]),
        )


@dataclass(frozen=True)
class TimeSlot:
    time_range: TimeRange
    available: bool

    @property
    def start(self) -> datetime:
        return self.time_range.start

    @property
    def end(self) -> datetime:
        return self.time_range.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "available": self.available,
        }


def can_reserve(requested: TimeRange, existing_reservations: Iterable[Reservation]) -> bool:
    """Return True if the requested range does not overlap any existing reservation."""
    for reservation in existing_reservations:
        if requested.overlaps(reservation.time_range):
            return False
    return True


def _parse_instant(value: Any) -> datetime:
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        raise ValueError(f"Stored instant is missing a UTC offset: {value!r}")
    return parsed.astimezone(timezone.utc)
