"""Booking-event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from roombook.domain.bus import EventBus
from roombook.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingStatusChanged,
    BookingUpdated,
)
from roombook.domain.models import HistoryEntry, HistoryEntryType
from roombook.repos.memory import BookingRepository, HistoryRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Records booking events into the history store and the log."""

    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.history_repo = history_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(BookingStatusChanged, self.on_status_changed)
        self.bus.subscribe(BookingDeleted, self.on_booking_deleted)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                type=HistoryEntryType.CREATED,
                payload={
                    "room_id": stored.room_id,
                    "booking_date": stored.booking_date.date().isoformat(),
                    "start_time": stored.start_time,
                    "end_time": stored.end_time,
                },
            )
        )
        logger.info(
            "Booking %s created for room %s on %s %s-%s",
            stored.id,
            stored.room_id,
            stored.booking_date.date(),
            stored.start_time,
            stored.end_time,
        )

    def on_booking_updated(self, event: BookingUpdated) -> None:
        if not event.changes:
            return
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                type=HistoryEntryType.UPDATED,
                payload={"changes": event.changes, "rechecked": event.rechecked},
            )
        )
        logger.info(
            "Booking %s updated: %s", event.booking_id, ", ".join(sorted(event.changes))
        )

    def on_status_changed(self, event: BookingStatusChanged) -> None:
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                type=HistoryEntryType.STATUS_CHANGED,
                payload={"from": event.old_status, "to": event.new_status},
            )
        )
        logger.info(
            "Booking %s status %s -> %s",
            event.booking_id,
            event.old_status,
            event.new_status,
        )

    def on_booking_deleted(self, event: BookingDeleted) -> None:
        # Entry outlives the booking so the history route can still show it.
        self.history_repo.add(
            HistoryEntry(
                booking_id=event.booking_id,
                type=HistoryEntryType.DELETED,
                payload={"room_id": event.room_id},
            )
        )
        logger.info("Booking %s deleted from room %s", event.booking_id, event.room_id)
