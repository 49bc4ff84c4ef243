"""In-memory repositories for rooms, departments, bookings and booking history."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from roombook.domain.models import (
    Booking,
    BookingStatus,
    Department,
    HistoryEntry,
    Room,
)


class RoomRepository:
    """Dict-backed store for Room instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Room] = {}

    def add(self, room: Room) -> None:
        self._store[room.id] = room

    def get(self, room_id: str) -> Room | None:
        return self._store.get(room_id)

    def get_by_number(self, room_number: str) -> Room | None:
        for room in self._store.values():
            if room.room_number == room_number:
                return room
        return None

    def list_all(self) -> list[Room]:
        return sorted(self._store.values(), key=lambda r: r.room_number)

    def delete(self, room_id: str) -> None:
        self._store.pop(room_id, None)


class DepartmentRepository:
    """Dict-backed store for Department instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Department] = {}

    def add(self, department: Department) -> None:
        self._store[department.id] = department

    def get_by_code(self, code: str) -> Department | None:
        for department in self._store.values():
            if department.code == code:
                return department
        return None

    def list_all(self) -> list[Department]:
        return sorted(self._store.values(), key=lambda d: d.code)


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    def add(self, booking: Booking) -> None:
        self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_all(self) -> list[Booking]:
        return list(self._store.values())

    def delete(self, booking_id: str) -> None:
        self._store.pop(booking_id, None)

    def find(
        self,
        room_id: str | None = None,
        day_start: datetime | None = None,
        day_end: datetime | None = None,
        status: BookingStatus | None = None,
        statuses: Iterable[BookingStatus] | None = None,
        exclude_id: str | None = None,
    ) -> list[Booking]:
        """Return bookings matching every given filter.

        ``day_start``/``day_end`` bound ``booking_date`` as ``[start, end)``.
        """
        allowed = set(statuses) if statuses is not None else None
        return [
            b
            for b in self._store.values()
            if (room_id is None or b.room_id == room_id)
            and (day_start is None or b.booking_date >= day_start)
            and (day_end is None or b.booking_date < day_end)
            and (status is None or b.status == status)
            and (allowed is None or b.status in allowed)
            and (exclude_id is None or b.id != exclude_id)
        ]

    def count_for_room(self, room_id: str) -> int:
        return sum(1 for b in self._store.values() if b.room_id == room_id)


class HistoryRepository:
    """List-backed store for HistoryEntry instances."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def add(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def list_for_booking(self, booking_id: str) -> list[HistoryEntry]:
        return sorted(
            [e for e in self._entries if e.booking_id == booking_id],
            key=lambda e: e.timestamp,
        )
