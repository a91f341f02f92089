"""Reservation store contract and the in-process implementation.

Stores are swappable and return domain models. The insert path is the only place the
no-overlap rule is enforced, so every implementation must run the overlap check and the
write inside one critical section.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from uuid import uuid4

from .booking import NewReservation, Reservation, TimeRange, can_reserve
from .errors import NotFound, TimeConflict

logger = logging.getLogger(__name__)


class ReservationStore(ABC):
    """Ordered collection of reservations for the single booth."""

    @abstractmethod
    def list_all(self) -> list[Reservation]:
        """Return every reservation ordered by start ascending."""
        ...

    @abstractmethod
    def get(self, reservation_id: str) -> Reservation | None:
        """Return a reservation by id, or None if not found."""
        ...

    @abstractmethod
    def insert_if_no_conflict(self, new_reservation: NewReservation) -> Reservation:
        """Assign an id and persist, or raise TimeConflict without writing anything."""
        ...

    @abstractmethod
    def delete_by_id(self, reservation_id: str) -> Reservation:
        """Remove and return the reservation, or raise NotFound."""
        ...

    def find_overlapping(self, time_range: TimeRange) -> list[Reservation]:
        return [row for row in self.list_all() if row.time_range.overlaps(time_range)]

    def find_in_range(self, start: datetime | None = None, end: datetime | None = None) -> list[Reservation]:
        """Reservations intersecting ``[start, end)``; a missing bound is unbounded."""
        return [
            row
            for row in self.list_all()
            if (end is None or row.start < end) and (start is None or row.end > start)
        ]


def build_reservation(new_reservation: NewReservation) -> Reservation:
    return Reservation(
        reservation_id=str(uuid4()),
        dj_name=new_reservation.dj_name,
        time_range=new_reservation.time_range,
        passcode_hash=new_reservation.passcode_hash,
        created_at=new_reservation.created_at,
    )


class InMemoryReservationStore(ReservationStore):
    """Keeps an immutable sorted tuple that writers swap under one lock.

    Readers grab the current tuple without locking, so they always observe the state
    before or after a write and never a half-applied one.
    """

    def __init__(self, reservations: list[Reservation] | None = None) -> None:
        self._lock = threading.Lock()
        self._reservations: tuple[Reservation, ...] = tuple(sorted(reservations or [], key=lambda row: row.start))

    def list_all(self) -> list[Reservation]:
        return list(self._reservations)

    def get(self, reservation_id: str) -> Reservation | None:
        for row in self._reservations:
            if row.reservation_id == reservation_id:
                return row
        return None

    def insert_if_no_conflict(self, new_reservation: NewReservation) -> Reservation:
        with self._lock:
            current = self._reservations
            if not can_reserve(new_reservation.time_range, current):
                raise TimeConflict()
            record = build_reservation(new_reservation)
            self._reservations = tuple(sorted(current + (record,), key=lambda row: row.start))
        logger.debug("Reserved %s for %s", record.reservation_id, record.time_range)
        return record

    def delete_by_id(self, reservation_id: str) -> Reservation:
        with self._lock:
            current = self._reservations
            remaining = tuple(row for row in current if row.reservation_id != reservation_id)
            if len(remaining) == len(current):
                raise NotFound()
            removed = next(row for row in current if row.reservation_id == reservation_id)
            self._reservations = remaining
        return removed
