"""Service for detecting time-slot conflicts between bookings of one room."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo

from roombook.domain.errors import BookingValidationError
from roombook.domain.models import BLOCKING_STATUSES, Booking
from roombook.domain.times import parse_time_of_day
from roombook.repos.memory import BookingRepository
from roombook.services.timeslots import day_bounds, normalize_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResult:
    conflict: bool
    conflicting_ids: list[str] = field(default_factory=list)


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Half-open interval intersection on minutes since midnight.

    Touching boundaries (``end == other_start``) are NOT considered overlaps.
    """
    return start < other_end and end > other_start


def find_conflicts(start: int, end: int, bookings: list[Booking]) -> list[Booking]:
    """Return the bookings whose stored interval overlaps ``[start, end)``."""
    return [
        booking
        for booking in bookings
        if overlaps(
            start,
            end,
            parse_time_of_day(booking.start_time),
            parse_time_of_day(booking.end_time),
        )
    ]


def check_conflict(
    repo: BookingRepository,
    room_id: str,
    day: str | date | datetime,
    start_time: str,
    end_time: str,
    zone: tzinfo,
    exclude_booking_id: str | None = None,
) -> ConflictResult:
    """Check a proposed ``[start_time, end_time)`` against the room's day.

    Only pending and approved bookings occupy the room. The booking named by
    *exclude_booking_id* is left out so an update never collides with its own
    stored state. Read-only.
    """
    if not room_id:
        raise BookingValidationError("room_id is required")
    if day is None or day == "":
        raise BookingValidationError("booking_date is required")

    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    day_start, day_end = day_bounds(normalize_day(day, zone), zone)

    candidates = repo.find(
        room_id=room_id,
        day_start=day_start,
        day_end=day_end,
        statuses=BLOCKING_STATUSES,
        exclude_id=exclude_booking_id,
    )
    logger.debug(
        "Checking %s-%s in room %s on %s against %d bookings",
        start_time,
        end_time,
        room_id,
        day_start.date(),
        len(candidates),
    )
    conflicts = find_conflicts(start, end, candidates)
    return ConflictResult(
        conflict=bool(conflicts), conflicting_ids=[b.id for b in conflicts]
    )
