"""Create/update guard around the conflict check.

Lock order is always: the booking's own lock first, then the locks of every
room the write touches, sorted by room id. The conflict check and the store
write for a room both happen while that room's lock is held, so two requests
for overlapping slots in the same room cannot both pass the check, and a room
cannot be deleted while a booking is being written into it.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from datetime import date, datetime, timezone, tzinfo
from typing import Iterator

from roombook.domain.bus import EventBus
from roombook.domain.errors import (
    BookingConflictError,
    BookingNotFoundError,
    BookingValidationError,
    RoomInUseError,
    RoomNotFoundError,
)
from roombook.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingStatusChanged,
    BookingUpdated,
)
from roombook.domain.models import (
    BLOCKING_STATUSES,
    Booking,
    BookingCreate,
    BookingStatus,
    BookingUpdate,
    Room,
)
from roombook.domain.times import parse_time_range
from roombook.repos.memory import BookingRepository, RoomRepository
from roombook.services.conflicts import check_conflict
from roombook.services.timeslots import day_start, format_time_of_day, normalize_day

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = (
    "Time slot already booked in this room. Please choose another time or room."
)


class _LockTable:
    """One lock per key, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())


class BookingService:
    def __init__(
        self,
        room_repo: RoomRepository,
        booking_repo: BookingRepository,
        bus: EventBus,
        zone: tzinfo,
    ) -> None:
        self.room_repo = room_repo
        self.booking_repo = booking_repo
        self.bus = bus
        self.zone = zone
        self._room_locks = _LockTable()
        self._booking_locks = _LockTable()

    @contextmanager
    def _rooms_locked(self, *room_ids: str) -> Iterator[None]:
        with ExitStack() as stack:
            for room_id in sorted(set(room_ids)):
                stack.enter_context(self._room_locks.get(room_id))
            yield

    def _require_room(self, room_id: str) -> Room:
        room = self.room_repo.get(room_id)
        if room is None:
            raise RoomNotFoundError("Meeting room not found")
        return room

    def _ensure_free(
        self,
        room_id: str,
        day: date,
        start_time: str,
        end_time: str,
        exclude_booking_id: str | None = None,
    ) -> None:
        result = check_conflict(
            self.booking_repo,
            room_id,
            day,
            start_time,
            end_time,
            self.zone,
            exclude_booking_id=exclude_booking_id,
        )
        if result.conflict:
            logger.info(
                "Rejected %s-%s in room %s on %s: overlaps %s",
                start_time,
                end_time,
                room_id,
                day,
                result.conflicting_ids,
            )
            raise BookingConflictError(CONFLICT_MESSAGE, result.conflicting_ids)

    def _booked_day(self, booking: Booking) -> date:
        return booking.booking_date.astimezone(self.zone).date()

    def _get(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get(booking_id)
        if booking is None:
            raise BookingNotFoundError("Booking not found")
        return booking

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate) -> Booking:
        """Accept and persist a new booking as ``pending``, or raise."""
        self._require_room(data.room_id)

        start, end = parse_time_range(data.start_time, data.end_time)
        start_time, end_time = format_time_of_day(start), format_time_of_day(end)
        day = normalize_day(data.booking_date, self.zone)

        with self._rooms_locked(data.room_id):
            # the room may have been deleted since the first lookup
            self._require_room(data.room_id)
            self._ensure_free(data.room_id, day, start_time, end_time)
            booking = Booking(
                room_id=data.room_id,
                full_name=data.full_name,
                department=data.department,
                purpose=data.purpose,
                booking_date=day_start(day, self.zone),
                start_time=start_time,
                end_time=end_time,
                status=BookingStatus.PENDING,
            )
            self.booking_repo.add(booking)

        self.bus.publish(BookingCreated(booking_id=booking.id))
        return booking

    def update_booking(self, booking_id: str, data: BookingUpdate) -> Booking:
        """Apply a partial update; re-check the slot only if room, day or time moved."""
        with self._booking_locks.get(booking_id):
            booking = self._get(booking_id)
            old_room_id = booking.room_id
            room_id = data.room_id or old_room_id

            old_day = self._booked_day(booking)
            day = (
                normalize_day(data.booking_date, self.zone)
                if data.booking_date is not None
                else old_day
            )
            start, end = parse_time_range(
                data.start_time or booking.start_time,
                data.end_time or booking.end_time,
            )
            start_time, end_time = format_time_of_day(start), format_time_of_day(end)

            changes: dict[str, list[str]] = {}
            if room_id != old_room_id:
                changes["room_id"] = [old_room_id, room_id]
            if day != old_day:
                changes["booking_date"] = [old_day.isoformat(), day.isoformat()]
            if start_time != booking.start_time:
                changes["start_time"] = [booking.start_time, start_time]
            if end_time != booking.end_time:
                changes["end_time"] = [booking.end_time, end_time]
            needs_recheck = bool(changes)

            for name in ("full_name", "department", "purpose"):
                value = getattr(data, name)
                if value is not None and value != getattr(booking, name):
                    changes[name] = [getattr(booking, name), value]

            with self._rooms_locked(old_room_id, room_id):
                if room_id != old_room_id:
                    self._require_room(room_id)
                if needs_recheck:
                    self._ensure_free(
                        room_id, day, start_time, end_time, exclude_booking_id=booking.id
                    )
                booking.room_id = room_id
                booking.booking_date = day_start(day, self.zone)
                booking.start_time = start_time
                booking.end_time = end_time
                booking.full_name = data.full_name or booking.full_name
                booking.department = data.department or booking.department
                booking.purpose = data.purpose or booking.purpose
                booking.updated_at = datetime.now(timezone.utc)

        self.bus.publish(
            BookingUpdated(booking_id=booking.id, changes=changes, rechecked=needs_recheck)
        )
        return booking

    def set_status(self, booking_id: str, status: str) -> Booking:
        """Approve, reject or reset a booking.

        Moving a rejected booking back to pending/approved re-checks its slot,
        since another booking may have taken it in the meantime.
        """
        try:
            new_status = BookingStatus(status)
        except ValueError:
            raise BookingValidationError(f"Invalid status {status!r}") from None

        with self._booking_locks.get(booking_id):
            booking = self._get(booking_id)
            old_status = booking.status

            # room_id cannot change while the booking lock is held
            with self._rooms_locked(booking.room_id):
                if new_status in BLOCKING_STATUSES and old_status not in BLOCKING_STATUSES:
                    self._ensure_free(
                        booking.room_id,
                        self._booked_day(booking),
                        booking.start_time,
                        booking.end_time,
                        exclude_booking_id=booking.id,
                    )
                booking.status = new_status
                booking.updated_at = datetime.now(timezone.utc)

        if new_status != old_status:
            self.bus.publish(
                BookingStatusChanged(
                    booking_id=booking.id, old_status=old_status, new_status=new_status
                )
            )
        return booking

    def delete_booking(self, booking_id: str) -> Booking:
        with self._booking_locks.get(booking_id):
            booking = self._get(booking_id)
            with self._rooms_locked(booking.room_id):
                self.booking_repo.delete(booking_id)
        self.bus.publish(BookingDeleted(booking_id=booking.id, room_id=booking.room_id))
        return booking

    def delete_room(self, room_id: str) -> Room:
        """Remove a room that no booking references."""
        with self._rooms_locked(room_id):
            room = self._require_room(room_id)
            count = self.booking_repo.count_for_room(room_id)
            if count:
                raise RoomInUseError(
                    f"Cannot delete room. There are {count} bookings in this room"
                )
            self.room_repo.delete(room_id)
        logger.info("Room %s (%s) deleted", room.room_number, room.id)
        return room
