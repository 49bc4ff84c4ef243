"""Slot labels and calendar-day bucketing."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

from dateutil.parser import isoparse

from roombook.domain.errors import BookingValidationError


def format_time_of_day(minutes: int) -> str:
    """Zero-padded ``HH:MM`` form used for stored bookings."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_label(minutes: int) -> str:
    """Availability label, e.g. ``8:00`` or ``17:30`` (hour is not padded)."""
    return f"{minutes // 60}:{minutes % 60:02d}"


def normalize_day(value: str | date | datetime, zone: tzinfo) -> date:
    """Return the calendar day *value* falls on in *zone*.

    Strings are read as ISO-8601 dates or datetimes. Naive datetimes are
    taken to already be in *zone*; aware ones are converted first.
    """
    if isinstance(value, str):
        try:
            value = isoparse(value.strip())
        except ValueError:
            raise BookingValidationError(f"Invalid booking date {value!r}") from None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(zone)
        return value.date()
    if isinstance(value, date):
        return value
    raise BookingValidationError(f"Invalid booking date {value!r}")


def day_start(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=zone)


def day_bounds(day: date, zone: tzinfo) -> tuple[datetime, datetime]:
    """Half-open ``[midnight, next midnight)`` window for *day* in *zone*."""
    return day_start(day, zone), day_start(day + timedelta(days=1), zone)
