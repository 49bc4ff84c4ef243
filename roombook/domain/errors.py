"""Exceptions raised by the scheduling services."""


class SchedulingError(Exception):
    """Base class for user-facing booking rejections (reported as HTTP 400)."""

    code = "validation"


class BookingValidationError(SchedulingError):
    pass


class BookingConflictError(SchedulingError):
    code = "conflict"

    def __init__(self, message: str, conflicting_ids: list[str] | None = None):
        super().__init__(message)
        self.conflicting_ids = conflicting_ids or []


class DuplicateRoomNumberError(SchedulingError):
    pass


class RoomInUseError(SchedulingError):
    pass


class DuplicateDepartmentCodeError(SchedulingError):
    pass


class RoomNotFoundError(LookupError):
    pass


class BookingNotFoundError(LookupError):
    pass
