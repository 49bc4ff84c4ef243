"""Service for listing a room's free half-hour slots on a given day."""

from __future__ import annotations

from datetime import date, datetime, tzinfo

from roombook.domain.errors import BookingValidationError
from roombook.domain.models import BLOCKING_STATUSES, Availability
from roombook.domain.times import parse_time_of_day
from roombook.repos.memory import BookingRepository
from roombook.services.timeslots import day_bounds, normalize_day, slot_label

SLOT_MINUTES = 30


def working_slots(work_start: int, work_end: int) -> list[str]:
    """Every slot label from ``work_start:00`` up to (not including) ``work_end:00``."""
    return [
        slot_label(minutes)
        for minutes in range(work_start * 60, work_end * 60, SLOT_MINUTES)
    ]


def booked_labels(start_time: str, end_time: str) -> list[str]:
    """Slot labels a single booking blocks.

    A slot is blocked when its boundary lies in ``[start, end)``; precision
    finer than the 30-minute grid is not tracked.
    """
    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    start_hour, start_min = divmod(start, 60)
    end_hour, end_min = divmod(end, 60)

    labels: list[str] = []
    for hour in range(start_hour, end_hour + 1):
        for minute in range(0, 60, SLOT_MINUTES):
            if hour == start_hour and minute < start_min:
                continue
            if hour == end_hour and minute >= end_min:
                continue
            labels.append(slot_label(hour * 60 + minute))
    return labels


def available_slots(
    repo: BookingRepository,
    room_id: str,
    day: str | date | datetime,
    zone: tzinfo,
    work_start: int = 8,
    work_end: int = 18,
) -> Availability:
    """Split the working-hours grid of *room_id* on *day* into booked and free slots.

    Both result lists keep the grid order, are disjoint, and together cover
    the grid exactly. Bookings outside working hours do not show up.
    """
    if not room_id:
        raise BookingValidationError("room_id is required")
    if day is None or day == "":
        raise BookingValidationError("date is required")

    all_slots = working_slots(work_start, work_end)
    day_start, day_end = day_bounds(normalize_day(day, zone), zone)
    bookings = repo.find(
        room_id=room_id,
        day_start=day_start,
        day_end=day_end,
        statuses=BLOCKING_STATUSES,
    )

    booked: set[str] = set()
    for booking in bookings:
        booked.update(booked_labels(booking.start_time, booking.end_time))

    return Availability(
        all_slots=all_slots,
        booked_slots=[s for s in all_slots if s in booked],
        available_slots=[s for s in all_slots if s not in booked],
    )
