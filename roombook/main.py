"""FastAPI application: entry point for the meeting-room booking service."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roombook.config import load_settings
from roombook.domain.bus import EventBus
from roombook.domain.errors import (
    BookingNotFoundError,
    DuplicateDepartmentCodeError,
    DuplicateRoomNumberError,
    RoomNotFoundError,
    SchedulingError,
)
from roombook.domain.handlers import HandlerRegistry
from roombook.domain.models import (
    AvailabilityResponse,
    Booking,
    BookingCreate,
    BookingList,
    BookingStatus,
    BookingUpdate,
    Department,
    DepartmentCreate,
    ErrorResponse,
    HistoryEntry,
    Room,
    RoomCreate,
    RoomUpdate,
    StatusUpdate,
)
from roombook.repos.memory import (
    BookingRepository,
    DepartmentRepository,
    HistoryRepository,
    RoomRepository,
)
from roombook.services.availability import available_slots
from roombook.services.bookings import BookingService
from roombook.services.timeslots import day_bounds, normalize_day

settings = load_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Meeting Room Booking Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
room_repo = RoomRepository()
department_repo = DepartmentRepository()
booking_repo = BookingRepository()
history_repo = HistoryRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    booking_repo=booking_repo,
    history_repo=history_repo,
)
booking_service = BookingService(
    room_repo=room_repo,
    booking_repo=booking_repo,
    bus=event_bus,
    zone=settings.zone,
)

_REJECTION = {400: {"model": ErrorResponse}}


# ── Error handling / middleware ───────────────────────────────────────


@app.exception_handler(SchedulingError)
def _scheduling_error(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc), "code": exc.code})


@app.exception_handler(RoomNotFoundError)
@app.exception_handler(BookingNotFoundError)
def _not_found(request: Request, exc: LookupError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


def _get_room(room_id: str) -> Room:
    room = room_repo.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Meeting room not found")
    return room


def _newest_first(bookings: list[Booking]) -> list[Booking]:
    return sorted(bookings, key=lambda b: (b.booking_date, b.start_time), reverse=True)


# ── Rooms ─────────────────────────────────────────────────────────────


@app.get("/rooms", response_model=list[Room])
def list_rooms() -> list[Room]:
    """Return all rooms ordered by room number."""
    return room_repo.list_all()


@app.get("/rooms/{room_id}", response_model=Room)
def get_room(room_id: str) -> Room:
    return _get_room(room_id)


@app.post("/rooms", response_model=Room, status_code=201, responses=_REJECTION)
def create_room(body: RoomCreate) -> Room:
    """Add a room; room numbers are unique."""
    if room_repo.get_by_number(body.room_number) is not None:
        raise DuplicateRoomNumberError("Room number already exists")
    room = Room(**body.model_dump())
    room_repo.add(room)
    logger.info("Room %s (%s) created", room.room_number, room.id)
    return room


@app.put("/rooms/{room_id}", response_model=Room, responses=_REJECTION)
def update_room(room_id: str, body: RoomUpdate) -> Room:
    """Partially update a room. Omitted fields keep their values."""
    room = _get_room(room_id)
    if body.room_number and body.room_number != room.room_number:
        if room_repo.get_by_number(body.room_number) is not None:
            raise DuplicateRoomNumberError("Room number already exists")

    for name, value in body.model_dump(exclude_none=True).items():
        setattr(room, name, value)
    return room


@app.delete("/rooms/{room_id}", responses=_REJECTION)
def delete_room(room_id: str) -> dict:
    """Delete a room that no booking references."""
    booking_service.delete_room(room_id)
    return {"status": "deleted", "deleted_id": room_id}


@app.get("/rooms/{room_id}/bookings", response_model=BookingList)
def list_room_bookings(room_id: str) -> BookingList:
    _get_room(room_id)
    bookings = _newest_first(booking_repo.find(room_id=room_id))
    return BookingList(total=len(bookings), bookings=bookings)


@app.get(
    "/rooms/{room_id}/availability",
    response_model=AvailabilityResponse,
    responses=_REJECTION,
)
def room_availability(room_id: str, date: str) -> AvailabilityResponse:
    """Free and booked half-hour slots for the room within working hours."""
    _get_room(room_id)
    result = available_slots(
        booking_repo,
        room_id,
        date,
        settings.zone,
        work_start=settings.work_start_hour,
        work_end=settings.work_end_hour,
    )
    return AvailabilityResponse(
        date=normalize_day(date, settings.zone).isoformat(),
        room_id=room_id,
        **result.model_dump(),
    )


# ── Departments ───────────────────────────────────────────────────────


@app.get("/departments", response_model=list[Department])
def list_departments() -> list[Department]:
    return department_repo.list_all()


@app.post(
    "/departments", response_model=Department, status_code=201, responses=_REJECTION
)
def create_department(body: DepartmentCreate) -> Department:
    """Add a department; department codes are unique."""
    if department_repo.get_by_code(body.code) is not None:
        raise DuplicateDepartmentCodeError("Department code already exists")
    department = Department(**body.model_dump())
    department_repo.add(department)
    logger.info("Department %s (%s) created", department.code, department.id)
    return department


# ── Bookings ──────────────────────────────────────────────────────────


@app.post("/bookings", response_model=Booking, status_code=201, responses=_REJECTION)
def create_booking(body: BookingCreate) -> Booking:
    """Book a room; rejected with 400 if the slot overlaps a live booking."""
    return booking_service.create_booking(body)


@app.get("/bookings", response_model=BookingList, responses=_REJECTION)
def list_bookings(
    room_id: str | None = None,
    date: str | None = None,
    status: BookingStatus | None = None,
) -> BookingList:
    """Return bookings, optionally filtered by room, day and status."""
    day_start = day_end = None
    if date:
        day_start, day_end = day_bounds(normalize_day(date, settings.zone), settings.zone)
    bookings = booking_repo.find(
        room_id=room_id, day_start=day_start, day_end=day_end, status=status
    )
    bookings = _newest_first(bookings)
    return BookingList(total=len(bookings), bookings=bookings)


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str) -> Booking:
    booking = booking_repo.get(booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@app.put("/bookings/{booking_id}", response_model=Booking, responses=_REJECTION)
def update_booking(booking_id: str, body: BookingUpdate) -> Booking:
    return booking_service.update_booking(booking_id, body)


@app.put("/bookings/{booking_id}/status", response_model=Booking, responses=_REJECTION)
def update_booking_status(booking_id: str, body: StatusUpdate) -> Booking:
    """Approve, reject or reset a booking."""
    return booking_service.set_status(booking_id, body.status)


@app.delete("/bookings/{booking_id}")
def delete_booking(booking_id: str) -> dict:
    booking_service.delete_booking(booking_id)
    return {"status": "deleted", "deleted_id": booking_id}


@app.get("/bookings/{booking_id}/history", response_model=list[HistoryEntry])
def booking_history(booking_id: str) -> list[HistoryEntry]:
    """Return the recorded history of a booking, oldest first."""
    entries = history_repo.list_for_booking(booking_id)
    if not entries and booking_repo.get(booking_id) is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return entries
