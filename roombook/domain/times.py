"""Wall-clock time-of-day values as stored on bookings."""

from __future__ import annotations

import re

from roombook.domain.errors import BookingValidationError

MINUTES_PER_DAY = 24 * 60

# ASCII digits only; \d would also accept other scripts' numerals.
_TIME_RE = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")


def parse_time_of_day(value: str) -> int:
    """Convert an ``H:MM`` / ``HH:MM`` string into minutes since midnight.

    Raises BookingValidationError for anything else, including out-of-range
    hours or minutes. Unparsable input never silently becomes zero.
    """
    if not isinstance(value, str):
        raise BookingValidationError(f"Invalid time {value!r}, expected HH:MM")
    m = _TIME_RE.match(value.strip())
    if m is None:
        raise BookingValidationError(f"Invalid time {value!r}, expected HH:MM")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise BookingValidationError(f"Invalid time {value!r}, expected HH:MM")
    return hour * 60 + minute


def parse_time_range(start_time: str, end_time: str) -> tuple[int, int]:
    """Parse both ends and enforce ``start < end``."""
    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    if start >= end:
        raise BookingValidationError("Start time must be before end time")
    return start, end
