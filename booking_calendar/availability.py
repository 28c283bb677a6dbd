from __future__ import annotations

from datetime import date
from typing import Iterable

from .booking import Reservation
from .timeutil import is_same_day, minutes_to_time, ranges_overlap, time_to_minutes

OPERATING_START = "06:00"
OPERATING_END = "22:00"
DEFAULT_SLOT_MINUTES = 60


def available_slots(
    resource_id: str,
    target_date: date,
    existing_reservations: Iterable[Reservation],
    slot_duration: int = DEFAULT_SLOT_MINUTES,
) -> list[str]:
    """Return the start times of free ``slot_duration`` blocks inside operating hours.

    Candidates step from 06:00 in ``slot_duration`` increments; a candidate is
    dropped when it would end after 22:00 or overlaps a reservation for the
    same resource on the same day.
    """
    if slot_duration <= 0:
        raise ValueError("slot_duration must be greater than zero")

    day_reservations = [
        reservation
        for reservation in existing_reservations
        if reservation.resource_id == resource_id and is_same_day(reservation.date, target_date)
    ]
    busy = [(reservation.start_minutes, reservation.end_minutes) for reservation in day_reservations]

    window_start = time_to_minutes(OPERATING_START)
    window_end = time_to_minutes(OPERATING_END)

    slots: list[str] = []
    for slot_start in range(window_start, window_end, slot_duration):
        slot_end = slot_start + slot_duration
        if slot_end > window_end:
            break
        if any(ranges_overlap(slot_start, slot_end, busy_start, busy_end) for busy_start, busy_end in busy):
            continue
        slots.append(minutes_to_time(slot_start))
    return slots
