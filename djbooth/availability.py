from __future__ import annotations

from datetime import datetime

from .booking import TimeRange, TimeSlot
from .event_window import EventWindowPolicy
from .store import ReservationStore
from .time_grid import GRANULARITY, aligned_slots_between


def compute_slots(
    store: ReservationStore,
    window: EventWindowPolicy,
    query_start: datetime,
    query_end: datetime | None,
    now: datetime,
) -> list[TimeSlot]:
    """Return every grid slot starting inside the query range, ascending.

    A slot is available when it fits the event window, starts strictly after ``now``
    and overlaps no stored reservation. Reservations are fetched once for the whole
    range and matched in memory.
    """
    effective = window.effective_query_window(query_start, query_end)
    starts = list(aligned_slots_between(effective.start, effective.end))
    if not starts:
        return []

    covering = TimeRange(starts[0], starts[-1] + GRANULARITY)
    booked = sorted(store.find_overlapping(covering), key=lambda row: row.start)

    slots: list[TimeSlot] = []
    cursor = 0
    for slot_start in starts:
        slot_range = TimeRange(slot_start, slot_start + GRANULARITY)
        while cursor < len(booked) and booked[cursor].end <= slot_range.start:
            cursor += 1
        taken = cursor < len(booked) and booked[cursor].time_range.overlaps(slot_range)
        available = window.covers(slot_range) and slot_range.start > now and not taken
        slots.append(TimeSlot(time_range=slot_range, available=available))
    return slots
