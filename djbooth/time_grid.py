from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator

GRANULARITY = timedelta(minutes=15)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def require_aware(instant: datetime, name: str = "instant") -> datetime:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware.")
    return instant


def is_aligned(instant: datetime) -> bool:
    """Return True when the instant sits exactly on a 15-minute boundary since the epoch.

    Alignment is judged on the absolute instant, so a +05:30 wall clock showing 10:00
    is not aligned while a +05:45 wall clock showing 10:00 is.
    """
    require_aware(instant)
    return (instant - EPOCH) % GRANULARITY == timedelta(0)


def ceil_to_grid(instant: datetime) -> datetime:
    remainder = (require_aware(instant) - EPOCH) % GRANULARITY
    if remainder == timedelta(0):
        return instant
    return instant + (GRANULARITY - remainder)


@dataclass(frozen=True)
class AlignedSlots:
    """Aligned instants ``t`` with ``start <= t < end``; iterating again starts over."""

    start: datetime
    end: datetime

    def __iter__(self) -> Iterator[datetime]:
        cursor = ceil_to_grid(self.start)
        while cursor < self.end:
            yield cursor
            cursor += GRANULARITY

    def __len__(self) -> int:
        first = ceil_to_grid(self.start)
        if first >= self.end:
            return 0
        return -(-(self.end - first) // GRANULARITY)


def aligned_slots_between(start: datetime, end: datetime) -> AlignedSlots:
    start = require_aware(start, "start").astimezone(timezone.utc)
    end = require_aware(end, "end").astimezone(timezone.utc)
    return AlignedSlots(start, end)
