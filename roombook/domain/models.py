"""Domain models for the meeting-room booking service."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from roombook.domain.errors import BookingValidationError
from roombook.domain.times import parse_time_range


class BookingStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that occupy a room's time slot. A rejected booking frees its slot.
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.APPROVED})


class HistoryEntryType(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
    DELETED = "deleted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Room(BaseModel):
    id: str = Field(default_factory=_new_id)
    room_number: str = Field(min_length=1)
    room_name: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    facilities: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


class Booking(BaseModel):
    id: str = Field(default_factory=_new_id)
    room_id: str
    full_name: str
    department: str
    purpose: str
    # Midnight of the booked day in the configured reference timezone.
    booking_date: datetime
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Booking:
        try:
            parse_time_range(self.start_time, self.end_time)
        except BookingValidationError as exc:
            raise ValueError(str(exc)) from exc
        return self

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES


class Department(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=_utcnow)


class HistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    booking_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: HistoryEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class RoomCreate(BaseModel):
    room_number: str = Field(min_length=1)
    room_name: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    facilities: list[str] = Field(default_factory=list)


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)


class RoomUpdate(BaseModel):
    room_number: str | None = Field(default=None, min_length=1)
    room_name: str | None = Field(default=None, min_length=1)
    capacity: int | None = Field(default=None, gt=0)
    facilities: list[str] | None = None


class BookingCreate(BaseModel):
    room_id: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    department: str = Field(min_length=1)
    purpose: str = Field(min_length=1)
    booking_date: str | date
    start_time: str
    end_time: str


class BookingUpdate(BaseModel):
    room_id: str | None = Field(default=None, min_length=1)
    full_name: str | None = Field(default=None, min_length=1)
    department: str | None = Field(default=None, min_length=1)
    purpose: str | None = Field(default=None, min_length=1)
    booking_date: str | date | None = None
    start_time: str | None = None
    end_time: str | None = None


class StatusUpdate(BaseModel):
    status: str


class BookingList(BaseModel):
    total: int
    bookings: list[Booking]


class Availability(BaseModel):
    all_slots: list[str]
    booked_slots: list[str]
    available_slots: list[str]


class AvailabilityResponse(Availability):
    date: str
    room_id: str


class ErrorResponse(BaseModel):
    error: str
    code: str
