from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .booking import TimeRange
from .errors import InvalidTimeRange, RangeTooLarge
from .time_grid import require_aware

DEFAULT_QUERY_HORIZON = timedelta(hours=72)


@dataclass(frozen=True)
class EventWindowPolicy:
    """Bounds every valid reservation; either bound may be left unconfigured."""

    start: datetime | None = None
    end: datetime | None = None
    query_horizon: timedelta = DEFAULT_QUERY_HORIZON

    def __post_init__(self) -> None:
        if self.start is not None:
            object.__setattr__(self, "start", require_aware(self.start, "start").astimezone(timezone.utc))
        if self.end is not None:
            object.__setattr__(self, "end", require_aware(self.end, "end").astimezone(timezone.utc))
        if self.start is not None and self.end is not None and self.start >= self.end:
            raise ValueError("Event start must be earlier than event end.")
        if self.query_horizon <= timedelta(0):
            raise ValueError("query_horizon must be positive.")

    @property
    def is_configured(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, instant: datetime) -> bool:
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None and instant >= self.end:
            return False
        return True

    def covers(self, time_range: TimeRange) -> bool:
        """True when the whole half-open range fits inside the window."""
        if not self.contains(time_range.start):
            return False
        return self.end is None or time_range.end <= self.end

    def effective_query_window(self, requested_start: datetime, requested_end: datetime | None = None) -> TimeRange:
        try:
            start = require_aware(requested_start, "startTime").astimezone(timezone.utc)
            end = (
                start + self.query_horizon
                if requested_end is None
                else require_aware(requested_end, "endTime").astimezone(timezone.utc)
            )
        except ValueError as error:
            raise InvalidTimeRange(str(error)) from error

        if end <= start:
            raise InvalidTimeRange("endTime must be after startTime.")
        if end - start > self.query_horizon:
            hours = int(self.query_horizon.total_seconds() // 3600)
            raise RangeTooLarge(f"Query range cannot exceed {hours} hours.")
        return TimeRange(start, end)
