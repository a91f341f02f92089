"""
Engine settings (Pydantic Settings).

Event bounds follow the booth server's format: ``YYYY-MM-DD HH:MM:SS`` in the event
timezone, or a bare ``YYYY-MM-DD`` meaning the start or the end of that day.
"""
from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import SettingsError
from .event_window import EventWindowPolicy

_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DATE_FORMAT = "%Y-%m-%d"


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    event_start_time: str | None = None
    event_end_time: str | None = None
    event_timezone: str = "Asia/Tokyo"
    data_dir: Path = Path("data")
    max_duration_minutes: int = 60
    query_horizon_hours: int = 72
    log_level: str = "info"

    @field_validator("event_start_time", "event_end_time", mode="before")
    @classmethod
    def blank_is_unset(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("max_duration_minutes", "query_horizon_hours")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @property
    def max_duration(self) -> timedelta:
        return timedelta(minutes=self.max_duration_minutes)

    @property
    def query_horizon(self) -> timedelta:
        return timedelta(hours=self.query_horizon_hours)

    def timezone_info(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.event_timezone)
        except (ZoneInfoNotFoundError, ValueError) as error:
            raise SettingsError(f"invalid EVENT_TIMEZONE: {self.event_timezone}") from error

    def event_window(self) -> EventWindowPolicy:
        tz = self.timezone_info()
        start = _parse_event_bound(self.event_start_time, tz, "EVENT_START_TIME", end_of_day=False)
        end = _parse_event_bound(self.event_end_time, tz, "EVENT_END_TIME", end_of_day=True)
        if start is not None and end is not None and start >= end:
            raise SettingsError("EVENT_START_TIME must be before EVENT_END_TIME")
        return EventWindowPolicy(start=start, end=end, query_horizon=self.query_horizon)


def _parse_event_bound(raw: str | None, tz: ZoneInfo, name: str, *, end_of_day: bool) -> datetime | None:
    if raw is None:
        return None
    value = raw.strip()

    try:
        parsed = datetime.strptime(value, _DATETIME_FORMAT).replace(tzinfo=tz)
    except ValueError:
        try:
            day = datetime.strptime(value, _DATE_FORMAT).date()
        except ValueError:
            day = None
        if day is not None:
            clock = time(23, 59, 59) if end_of_day else time.min
            parsed = datetime.combine(day, clock, tzinfo=tz)
        else:
            try:
                parsed = datetime.fromisoformat(value)
            except ValueError as error:
                raise SettingsError(f"invalid {name} format. Use YYYY-MM-DD HH:MM:SS format") from error
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=tz)

    return parsed.astimezone(timezone.utc)


def configure_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
