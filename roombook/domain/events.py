"""Domain events emitted when bookings are written."""

from __future__ import annotations

from pydantic import BaseModel

from roombook.domain.models import BookingStatus


class BookingCreated(BaseModel):
    """Fired when a new Booking is persisted."""

    booking_id: str


class BookingUpdated(BaseModel):
    """Fired after a booking's fields were changed.

    ``changes`` maps each changed field to its ``[old, new]`` values.
    """

    booking_id: str
    changes: dict[str, list[str]]
    rechecked: bool = False


class BookingStatusChanged(BaseModel):
    booking_id: str
    old_status: BookingStatus
    new_status: BookingStatus


class BookingDeleted(BaseModel):
    booking_id: str
    room_id: str
